"""
Data models for firestarter.

Records are plain dataclasses that serialize to JSON-compatible dicts.
Timestamps are timezone-aware UTC datetimes stored as ISO strings.
"""
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Generic, Optional, TypeVar
import json


# user_app_key value for accounts that only authenticate with JWTs
JWT_ONLY_APP_KEY = 'jwt-based'

T = TypeVar('T')


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        # epoch milliseconds, as written by the JavaScript SDK
        parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    else:
        parsed = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class TokenSet:
    """Tokens issued by /auth/login, /auth/refresh and /auth/set-password."""
    access_token: str
    refresh_token: Optional[str]
    expires_in: float

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> 'TokenSet':
        """
        Parse a token response body.

        Callers going through ``AuthSession.parse_tokens`` get these as
        ``ApiError`` instead.

        Raises:
            KeyError: If access_token is missing
            ValueError: If expires_in is not a number
            TypeError: If expires_in is not a number
        """
        return cls(
            access_token=data['access_token'],
            refresh_token=data.get('refresh_token'),
            expires_in=float(data.get('expires_in') or 0),
        )

    def expiry_from(self, now: datetime) -> datetime:
        """Absolute expiry instant relative to ``now``."""
        return now + timedelta(seconds=self.expires_in)


@dataclass(frozen=True)
class Account:
    """
    Credentials for one storage account.

    Snapshots are immutable: renewing tokens yields a new Account through
    ``with_tokens`` and leaves the original untouched.

    Attributes:
        username: Account username
        password: Account password (needed for re-login)
        user_id: Canonical user id on the service
        user_app_key: Legacy app key, or ``JWT_ONLY_APP_KEY``
        access_token: Current JWT access token
        refresh_token: Refresh token for the access token
        token_expiry: Absolute expiry of the access token
    """
    username: str
    password: str
    user_id: str
    user_app_key: str
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    token_expiry: Optional[datetime] = None

    def is_token_fresh(self, now: Optional[datetime] = None) -> bool:
        """True when an access token exists and has not expired yet."""
        if not self.access_token or self.token_expiry is None:
            return False
        return (now or utcnow()) < self.token_expiry

    @property
    def has_legacy_key(self) -> bool:
        """True when user_app_key can be used for header-based auth."""
        return bool(self.user_app_key) and self.user_app_key != JWT_ONLY_APP_KEY

    def with_tokens(self, tokens: TokenSet, now: Optional[datetime] = None) -> 'Account':
        """Return a copy carrying ``tokens``; keeps the old refresh token if none was issued."""
        return replace(
            self,
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token or self.refresh_token,
            token_expiry=tokens.expiry_from(now or utcnow()),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'username': self.username,
            'password': self.password,
            'user_id': self.user_id,
            'user_app_key': self.user_app_key,
            'access_token': self.access_token,
            'refresh_token': self.refresh_token,
            'token_expiry': self.token_expiry.isoformat() if self.token_expiry else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Account':
        """
        Create from dictionary.

        Raises:
            KeyError: If a required field is missing
            ValueError: If token_expiry cannot be parsed
        """
        return cls(
            username=data['username'],
            password=data['password'],
            user_id=data['user_id'],
            user_app_key=data.get('user_app_key') or JWT_ONLY_APP_KEY,
            access_token=data.get('access_token'),
            refresh_token=data.get('refresh_token'),
            token_expiry=_parse_datetime(data.get('token_expiry')),
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    def __repr__(self) -> str:
        return (
            f"Account(username={self.username!r}, user_id={self.user_id!r}, "
            f"token_expiry={self.token_expiry!r})"
        )


@dataclass(frozen=True)
class Balance:
    """Balance snapshot. Never cached."""
    sol: float
    pipe: float
    public_key: str


@dataclass(frozen=True)
class UploadResult:
    """
    Result of a successful upload.

    ``identifier`` is derived from the bytes only. ``display_name`` is the
    name the service stores the file under and the only key accepted by
    download and delete.
    """
    identifier: str
    display_name: str
    size: int
    hash_value: str
    uploaded_at: datetime = field(default_factory=utcnow)


@dataclass
class FileRecord:
    """A manifest entry describing a known upload."""
    identifier: str
    display_name: str
    size: int
    hash_value: str
    uploaded_at: datetime = field(default_factory=utcnow)
    metadata: Optional[Dict[str, Any]] = None

    @classmethod
    def from_upload(cls, result: UploadResult, metadata: Optional[Dict[str, Any]] = None) -> 'FileRecord':
        return cls(
            identifier=result.identifier,
            display_name=result.display_name,
            size=result.size,
            hash_value=result.hash_value,
            uploaded_at=result.uploaded_at,
            metadata=metadata,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'identifier': self.identifier,
            'display_name': self.display_name,
            'size': self.size,
            'hash_value': self.hash_value,
            'uploaded_at': self.uploaded_at.isoformat(),
        }
        if self.metadata is not None:
            data['metadata'] = self.metadata
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FileRecord':
        """
        Create from dictionary.

        Raises:
            KeyError: If a required field is missing
            ValueError: If a field has the wrong shape
        """
        return cls(
            identifier=str(data['identifier']),
            display_name=str(data['display_name']),
            size=int(data['size']),
            hash_value=str(data.get('hash_value') or data['identifier']),
            uploaded_at=_parse_datetime(data.get('uploaded_at')) or utcnow(),
            metadata=data.get('metadata'),
        )


@dataclass(frozen=True)
class PublicLink:
    """Shareable link for a stored file."""
    link_hash: str
    file_name: str
    share_url: str


@dataclass(frozen=True)
class WalletCredentials:
    """Username/password pair derived from a wallet."""
    username: str
    password: str


@dataclass(frozen=True)
class Authenticated(Generic[T]):
    """
    Value returned by an authenticated call plus the account snapshot used.

    When the call renewed tokens, ``account`` is the new snapshot and the
    caller should persist it.
    """
    value: T
    account: Account
    refreshed: bool = False
