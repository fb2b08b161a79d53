"""
Deterministic credential generation from wallet data.

Optional helpers: the same wallet always maps to the same username and
password, so an application can log in or create the account without
storing anything. Address-based credentials can be guessed by anyone who
knows the address; signature-based ones require the wallet to sign.
"""
from Crypto.Hash import SHA256

from ..exceptions import ValidationError
from ..models import WalletCredentials

USERNAME_PREFIX = 'pipe_'
PASSWORD_PREFIX = 'Fs_'
USERNAME_HEX_LENGTH = 20
PASSWORD_HEX_LENGTH = 29


def _sha256_hex(text: str) -> str:
    return SHA256.new(text.encode('utf-8')).hexdigest()


def _derive(material: str) -> WalletCredentials:
    username = USERNAME_PREFIX + _sha256_hex(f"username:{material}")[:USERNAME_HEX_LENGTH]
    password = PASSWORD_PREFIX + _sha256_hex(f"password:{material}:v1")[:PASSWORD_HEX_LENGTH]
    return WalletCredentials(username=username, password=password)


def generate_credentials_from_address(wallet_address: str) -> WalletCredentials:
    """
    Generate deterministic credentials from a wallet address.

    Args:
        wallet_address: Solana wallet address

    Returns:
        WalletCredentials with a 25-char username and 32-char password

    Raises:
        ValidationError: If the address is shorter than 8 characters

    Example:
        >>> creds = generate_credentials_from_address('7xKXtg2CW...')
        >>> creds.username[:5]
        'pipe_'
    """
    if not wallet_address or not isinstance(wallet_address, str) or len(wallet_address) < 8:
        raise ValidationError('Invalid wallet address')
    return _derive(wallet_address)


def generate_credentials_from_signature(signature: str, wallet_address: str) -> WalletCredentials:
    """
    Generate deterministic credentials from a wallet signature.

    Args:
        signature: Base64 encoded signature of an authentication message
        wallet_address: Wallet address (extra entropy)

    Raises:
        ValidationError: If either argument is empty
    """
    if not signature or not wallet_address:
        raise ValidationError('Signature and wallet address required')
    return _derive(f"{signature}:{wallet_address}")
