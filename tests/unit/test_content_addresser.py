"""
Unit tests for content addressing.

Tests ContentAddresser and the hash providers.
"""
import hashlib
import warnings

import pytest
from blake3 import blake3

from firestarter.core.exceptions import ValidationError
from firestarter.core.hashing import (
    Blake3Provider,
    ContentAddresser,
    HashProvider,
    Sha256Provider,
    get_provider,
)
from firestarter.core.hashing import content_addresser as addresser_module


class TestProviders:
    """Tests for hash providers."""

    def test_blake3_matches_reference(self):
        """Test BLAKE3 provider matches the blake3 package."""
        assert Blake3Provider().hexdigest(b"hi") == blake3(b"hi").hexdigest()

    def test_blake3_empty_input(self):
        """Test BLAKE3 digest of empty input."""
        assert Blake3Provider().hexdigest(b"") == (
            "af1349b9f5f9a1a6a0404dea36dcc9499bcb25c9adc112b7cc9a93cae41f3262"
        )

    def test_sha256_matches_hashlib(self):
        """Test SHA-256 provider matches hashlib."""
        data = b"some file content"
        assert Sha256Provider().hexdigest(data) == hashlib.sha256(data).hexdigest()

    def test_providers_satisfy_protocol(self):
        """Test both providers satisfy HashProvider."""
        assert isinstance(Blake3Provider(), HashProvider)
        assert isinstance(Sha256Provider(), HashProvider)

    def test_get_provider_by_name(self):
        """Test looking up providers by name."""
        assert get_provider('blake3').name == 'blake3'
        assert get_provider('SHA256').name == 'sha256'

    def test_get_provider_unknown(self):
        """Test unknown names raise ValidationError."""
        with pytest.raises(ValidationError, match="Unknown hash algorithm"):
            get_provider('md5')


class TestContentAddresser:
    """Tests for ContentAddresser."""

    def test_default_is_blake3(self):
        """Test default algorithm is BLAKE3."""
        addresser = ContentAddresser()

        assert addresser.algorithm == 'blake3'
        assert addresser.compute(b"hi") == blake3(b"hi").hexdigest()

    def test_identifier_is_64_hex_chars(self):
        """Test identifiers are 64 lowercase hex characters."""
        identifier = ContentAddresser().compute(b"x" * 10000)

        assert len(identifier) == 64
        assert identifier == identifier.lower()
        int(identifier, 16)

    def test_deterministic(self):
        """Test equal bytes give equal identifiers."""
        addresser = ContentAddresser()
        assert addresser.compute(b"payload") == addresser.compute(bytearray(b"payload"))

    def test_different_bytes_differ(self):
        """Test different bytes give different identifiers."""
        addresser = ContentAddresser()
        assert addresser.compute(b"a") != addresser.compute(b"b")

    def test_injected_provider(self):
        """Test an injected provider is used for every call."""
        addresser = ContentAddresser(Sha256Provider())

        assert addresser.algorithm == 'sha256'
        assert addresser.compute(b"hi") == hashlib.sha256(b"hi").hexdigest()

    def test_auto_prefers_blake3(self):
        """Test auto() picks BLAKE3 when it is installed."""
        assert ContentAddresser.auto().algorithm == 'blake3'

    def test_auto_falls_back_to_sha256(self, monkeypatch):
        """Test auto() falls back to SHA-256 and warns once."""
        monkeypatch.setattr(addresser_module.importlib.util, 'find_spec', lambda name: None)
        monkeypatch.setattr(addresser_module, '_fallback_warned', False)

        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter('always')
            first = ContentAddresser.auto()
            second = ContentAddresser.auto()

        assert first.algorithm == 'sha256'
        assert second.algorithm == 'sha256'
        runtime = [w for w in caught if issubclass(w.category, RuntimeWarning)]
        assert len(runtime) == 1

    def test_repr(self):
        """Test repr shows the algorithm."""
        assert 'blake3' in repr(ContentAddresser())
