"""
Storage gateway.

One method per remote capability of the Pipe storage service. Inputs are
validated before any network call; bearer operations return the value
together with the account snapshot used, which differs from the one
passed in when tokens were renewed.

Files are retrieved and deleted by the name they were uploaded under.
The content identifier returned by ``upload_file`` is for local
bookkeeping only; the service does not resolve it.
"""
from typing import Any, Callable, Dict, Optional, Tuple, Union

import aiohttp

from ..exceptions import ApiError, ErrorCode, ValidationError
from ..hashing import ContentAddresser
from ..logging import get_logger
from ..models import (
    Account,
    Authenticated,
    Balance,
    JWT_ONLY_APP_KEY,
    PublicLink,
    UploadResult,
)
from ..validation import (
    assert_valid_amount,
    assert_valid_file_name,
    assert_valid_password,
    assert_valid_username,
)
from .auth import AuthHeaders, AuthSession, bearer_headers
from .config import APIConfig
from .errors import error_from_status
from .transport import HTTPTransport, NO_TIMEOUT, TransportResponse

ProgressCallback = Callable[[int], Any]

StatusOverrides = Dict[int, Tuple[ErrorCode, str]]

UPLOAD_CHUNK_SIZE = 64 * 1024


async def _iter_with_progress(data: bytes, on_progress: ProgressCallback, chunk_size: int = UPLOAD_CHUNK_SIZE):
    """Yield ``data`` in chunks, reporting integer percent after each one."""
    total = len(data)
    view = memoryview(data)
    sent = 0
    last_percent = -1
    for offset in range(0, total, chunk_size):
        chunk = bytes(view[offset:offset + chunk_size])
        yield chunk
        sent += len(chunk)
        percent = round(sent * 100 / total)
        if percent != last_percent:
            last_percent = percent
            on_progress(percent)


class StorageGateway:
    """
    Asynchronous client for the Pipe storage API.

    Example:
        >>> async with StorageGateway() as gateway:
        ...     account = await gateway.login("myusername", "mypassword")
        ...     result = await gateway.upload_file(account, b"hi", "a.txt")
        ...     account = result.account  # persist if result.refreshed
        ...     data = (await gateway.download_file(account, "a.txt")).value
    """

    def __init__(
        self,
        config: Optional[APIConfig] = None,
        *,
        transport: Optional[HTTPTransport] = None,
        auth: Optional[AuthSession] = None,
        addresser: Optional[ContentAddresser] = None
    ):
        """
        Initialize gateway.

        Args:
            config: API configuration (ignored if transport is given)
            transport: Shared HTTP transport
            auth: Auth session (created over the transport if not provided)
            addresser: Content addresser for upload identifiers
        """
        self._transport = transport or HTTPTransport(config)
        self._owns_transport = transport is None
        self._config = self._transport.config
        self._auth = auth or AuthSession(self._transport)
        self._addresser = addresser or ContentAddresser()
        self._logger = get_logger('firestarter.gateway')

    @property
    def config(self) -> APIConfig:
        return self._config

    @property
    def auth(self) -> AuthSession:
        return self._auth

    @property
    def addresser(self) -> ContentAddresser:
        return self._addresser

    async def __aenter__(self) -> 'StorageGateway':
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Close the transport if this gateway created it."""
        if self._owns_transport:
            await self._transport.close()

    # Accounts

    async def create_account(self, username: str, password: str) -> Account:
        """
        Create a new account.

        Registers the username, then sets the password, which also issues
        the first tokens.

        Args:
            username: Username (8+ chars, letters, digits, underscore)
            password: Password (8+ chars)

        Returns:
            Account with tokens

        Raises:
            ValidationError: If username or password is malformed
            ApiError: USERNAME_EXISTS on 409
        """
        assert_valid_username(username)
        assert_valid_password(password)

        create_response = await self._transport.request('POST', '/users', json={'username': username})
        if not create_response.ok:
            self._fail(create_response, 'Failed to create account', ErrorCode.UNKNOWN, {
                409: (ErrorCode.USERNAME_EXISTS, 'Username already exists. Please choose a different username.'),
            })

        user_data = create_response.json(default={})
        user_id = user_data.get('user_id') if isinstance(user_data, dict) else None
        user_app_key = user_data.get('user_app_key') if isinstance(user_data, dict) else None
        if not user_id or not user_app_key:
            raise ApiError('Failed to create account: malformed response', create_response.status, ErrorCode.UNKNOWN)

        password_response = await self._transport.request('POST', '/auth/set-password', json={
            'user_id': user_id,
            'user_app_key': user_app_key,
            'new_password': password,
        })
        if not password_response.ok:
            self._fail(password_response, 'Failed to set password', ErrorCode.UNKNOWN)

        tokens = self._auth.parse_tokens(password_response.json())
        account = Account(
            username=username,
            password=password,
            user_id=user_id,
            user_app_key=user_app_key,
        ).with_tokens(tokens, self._auth.now())

        self._logger.info(f"Created account {username} ({user_id})")
        return account

    async def login(self, username: str, password: str) -> Account:
        """
        Login to an existing account.

        The canonical user id is resolved through /checkWallet on a best
        effort basis; if that fails the username stands in for it.

        Raises:
            ValidationError: If username or password is empty
            ApiError: INVALID_CREDENTIALS on 401
        """
        if not username or not password:
            raise ValidationError('Username and password required')

        tokens = await self._auth.login(username, password)

        user_id = username
        user_app_key = JWT_ONLY_APP_KEY
        try:
            wallet = await self._transport.request(
                'POST', '/checkWallet', json={},
                headers=bearer_headers(tokens.access_token)
            )
            data = wallet.json(default={})
            if wallet.ok and isinstance(data, dict):
                user_id = data.get('user_id') or user_id
                user_app_key = data.get('user_app_key') or user_app_key
            elif not wallet.ok:
                self._logger.warning(f"checkWallet returned {wallet.status} during login, using username as user id")
        except ApiError as e:
            self._logger.warning(f"checkWallet failed during login ({e.message}), using username as user id")

        account = Account(
            username=username,
            password=password,
            user_id=user_id,
            user_app_key=user_app_key,
        ).with_tokens(tokens, self._auth.now())

        self._logger.info(f"Logged in as {username}")
        return account

    # Balances

    async def get_balance(self, account: Account) -> Authenticated[Balance]:
        """
        Get SOL and PIPE balances.

        A failing PIPE query degrades to a zero PIPE balance.

        Raises:
            AuthorizationError: If no credential path is left
            ApiError: If the wallet query fails
        """
        response, auth = await self._authed(account, 'POST', '/checkWallet', json={})
        if not response.ok:
            self._fail(response, 'Failed to get balance', ErrorCode.UNKNOWN, use_status_map=True)

        wallet = response.json(default={})
        if not isinstance(wallet, dict):
            wallet = {}

        pipe_balance = 0.0
        try:
            token_response = await self._transport.request(
                'POST', '/checkCustomToken',
                json={'token_mint': self._config.token_mint},
                headers=auth.headers
            )
            token_data = token_response.json(default={})
            if token_response.ok and isinstance(token_data, dict):
                pipe_balance = self._amount(token_data.get('ui_amount'), 'PIPE balance')
            else:
                self._logger.warning(f"PIPE balance check returned {token_response.status}, defaulting to 0")
        except ApiError as e:
            self._logger.warning(f"PIPE balance check failed ({e.message}), defaulting to 0")

        balance = Balance(
            sol=self._amount(wallet.get('balance_sol'), 'SOL balance'),
            pipe=pipe_balance,
            public_key=wallet.get('public_key') or '',
        )
        return self._result(balance, account, auth)

    # Files

    async def upload_file(
        self,
        account: Account,
        data: Union[bytes, bytearray, memoryview],
        file_name: str,
        on_progress: Optional[ProgressCallback] = None
    ) -> Authenticated[UploadResult]:
        """
        Upload bytes under ``file_name``.

        Uploads have no timeout. The identifier is computed from the bytes
        after the transfer succeeded.

        Args:
            account: Account snapshot
            data: File content
            file_name: Name to store the file under (needed to download it)
            on_progress: Called with integer percent (0-100) while sending

        Raises:
            ValidationError: If file_name is empty
            ApiError: INSUFFICIENT_BALANCE on 402, UNAUTHORIZED on 401,
                UPLOAD_FAILED otherwise
        """
        assert_valid_file_name(file_name)
        payload = bytes(data)

        body: Any = payload
        if on_progress is not None and payload:
            body = _iter_with_progress(payload, on_progress)

        response, auth = await self._authed(
            account, 'POST', '/upload',
            params={'file_name': file_name},
            data=body,
            extra_headers={
                'Content-Type': 'application/octet-stream',
                'Content-Length': str(len(payload)),
            },
            timeout=NO_TIMEOUT
        )
        if response.status not in (200, 202):
            self._fail(response, 'Upload failed', ErrorCode.UPLOAD_FAILED, {
                401: (ErrorCode.UNAUTHORIZED, 'Authentication failed. Please login again.'),
                402: (ErrorCode.INSUFFICIENT_BALANCE, 'Insufficient PIPE balance. Please deposit more PIPE tokens to upload files.'),
            })

        content_hash = self._addresser.compute(payload)
        result = UploadResult(
            identifier=content_hash,
            display_name=file_name,
            size=len(payload),
            hash_value=content_hash,
        )
        self._logger.info(f"Uploaded {file_name} ({len(payload)} bytes, {self._addresser.algorithm} {content_hash[:12]})")
        return self._result(result, account, auth)

    async def download_file(
        self,
        account: Account,
        file_name: str,
        stream: bool = True
    ) -> Authenticated[bytes]:
        """
        Download a file by the name it was uploaded under.

        ``file_name`` must be the original upload name, not the content
        identifier.

        Args:
            account: Account snapshot
            file_name: Original upload name
            stream: Use /download-stream (True) or /download

        Raises:
            ApiError: FILE_NOT_FOUND on 404, TIMEOUT past the download bound,
                DOWNLOAD_FAILED otherwise
        """
        assert_valid_file_name(file_name)

        response, auth = await self._authed(
            account, 'GET', '/download-stream' if stream else '/download',
            params={'file_name': file_name},
            timeout=aiohttp.ClientTimeout(total=self._config.download_timeout)
        )
        if response.status != 200:
            self._fail(response, 'Download failed', ErrorCode.DOWNLOAD_FAILED, {
                401: (ErrorCode.UNAUTHORIZED, 'Authentication failed. Please login again.'),
                404: (ErrorCode.FILE_NOT_FOUND, f"File not found: {file_name}"),
            })
        return self._result(response.body, account, auth)

    async def delete_file(self, account: Account, file_name: str) -> Authenticated[None]:
        """
        Delete a file by the name it was uploaded under.

        Raises:
            ApiError: FILE_NOT_FOUND on 404, DELETE_FAILED otherwise
        """
        assert_valid_file_name(file_name)

        response, auth = await self._authed(account, 'POST', '/deleteFile', json={
            'user_id': account.user_id,
            'user_app_key': account.user_app_key,
            'file_name': file_name,
        })
        if response.status != 200:
            self._fail(response, 'Delete failed', ErrorCode.DELETE_FAILED, {
                404: (ErrorCode.FILE_NOT_FOUND, 'File not found'),
            })
        self._logger.info(f"Deleted {file_name}")
        return self._result(None, account, auth)

    # Public links

    async def create_public_link(
        self,
        account: Account,
        file_name: str,
        custom_title: Optional[str] = None,
        custom_description: Optional[str] = None
    ) -> Authenticated[PublicLink]:
        """
        Create a public shareable link for a file.

        Args:
            account: Account snapshot
            file_name: Original upload name
            custom_title: Optional title for social media previews
            custom_description: Optional description for previews

        Raises:
            ApiError: FILE_NOT_FOUND on 404
        """
        assert_valid_file_name(file_name)

        body: Dict[str, Any] = {
            'user_id': account.user_id,
            'user_app_key': account.user_app_key,
            'file_name': file_name,
        }
        if custom_title is not None:
            body['custom_title'] = custom_title
        if custom_description is not None:
            body['custom_description'] = custom_description

        response, auth = await self._authed(account, 'POST', '/createPublicLink', json=body)
        if not response.ok:
            self._fail(response, 'Failed to create public link', ErrorCode.UNKNOWN, {
                404: (ErrorCode.FILE_NOT_FOUND, 'File not found'),
            })

        data = response.json(default={})
        link_hash = data.get('link_hash') if isinstance(data, dict) else None
        if not link_hash:
            raise ApiError('Failed to create public link: no link hash returned', response.status, ErrorCode.UNKNOWN)

        share_url = data.get('public_url') or f"{self._config.base_url.rstrip('/')}/publicDownload?hash={link_hash}"
        return self._result(PublicLink(link_hash=link_hash, file_name=file_name, share_url=share_url), account, auth)

    async def delete_public_link(self, account: Account, link_hash: str) -> Authenticated[None]:
        """
        Delete a public link.

        Raises:
            ApiError: FILE_NOT_FOUND on 404
        """
        if not link_hash:
            raise ValidationError('Link hash is required')

        response, auth = await self._authed(account, 'DELETE', '/deletePublicLink', json={
            'user_id': account.user_id,
            'user_app_key': account.user_app_key,
            'link_hash': link_hash,
        })
        if response.status != 200:
            self._fail(response, 'Failed to delete public link', ErrorCode.UNKNOWN, {
                404: (ErrorCode.FILE_NOT_FOUND, 'Public link not found'),
            })
        return self._result(None, account, auth)

    async def public_download(self, link_hash: str) -> bytes:
        """
        Download a file through a public link. No account needed.

        Raises:
            ApiError: FILE_NOT_FOUND on 404, DOWNLOAD_FAILED otherwise
        """
        if not link_hash:
            raise ValidationError('Link hash is required')

        response = await self._transport.request(
            'GET', f"/public/{link_hash}",
            timeout=aiohttp.ClientTimeout(total=self._config.download_timeout)
        )
        if response.status != 200:
            self._fail(response, 'Public download failed', ErrorCode.DOWNLOAD_FAILED, {
                404: (ErrorCode.FILE_NOT_FOUND, 'Public link not found or expired'),
            })
        return response.body

    # Currency

    async def exchange_currency(self, account: Account, amount: float) -> Authenticated[float]:
        """
        Exchange SOL for PIPE tokens.

        Args:
            account: Account snapshot
            amount: Amount of SOL to exchange (> 0)

        Returns:
            Amount of PIPE tokens minted

        Raises:
            ValidationError: If amount is not a positive number
            ApiError: INSUFFICIENT_SOL on 402
        """
        assert_valid_amount(amount)

        response, auth = await self._authed(account, 'POST', '/exchangeSolForTokens', json={'amount_sol': amount})
        if not response.ok:
            self._fail(response, 'Exchange failed', ErrorCode.UNKNOWN, {
                402: (ErrorCode.INSUFFICIENT_SOL, 'Insufficient SOL balance for exchange'),
            })

        data = response.json(default={})
        minted = 0.0
        if isinstance(data, dict):
            minted = self._amount(
                data.get('tokens_minted') or data.get('pipe_tokens') or data.get('amount'),
                'minted amount'
            )
        self._logger.info(f"Exchanged {amount} SOL for {minted} PIPE")
        return self._result(minted, account, auth)

    exchange_sol_for_pipe = exchange_currency

    # Internals

    async def _authed(
        self,
        account: Account,
        method: str,
        path: str,
        *,
        extra_headers: Optional[Dict[str, str]] = None,
        **kwargs
    ) -> Tuple[TransportResponse, AuthHeaders]:
        auth = await self._auth.get_headers(account)
        headers = dict(auth.headers)
        if extra_headers:
            headers.update(extra_headers)
        response = await self._transport.request(method, path, headers=headers, **kwargs)
        if response.status == 401:
            self._logger.warning(f"{method} {path} rejected with 401, token may be expired")
        return response, auth

    def _amount(self, value: Any, label: str) -> float:
        """Numeric field from a response body; missing or malformed reads as 0."""
        if value is None or value == '':
            return 0.0
        try:
            return float(value)
        except (TypeError, ValueError):
            self._logger.warning(f"Malformed {label} {value!r} in response, defaulting to 0")
            return 0.0

    @staticmethod
    def _result(value, account: Account, auth: AuthHeaders) -> Authenticated:
        return Authenticated(value=value, account=auth.account, refreshed=auth.account is not account)

    @staticmethod
    def _fail(
        response: TransportResponse,
        operation: str,
        default_code: ErrorCode,
        overrides: Optional[StatusOverrides] = None,
        use_status_map: bool = False
    ):
        """Raise the ApiError for a failed response."""
        if overrides and response.status in overrides:
            code, message = overrides[response.status]
            raise ApiError(message, response.status, code)
        if use_status_map:
            raise error_from_status(response.status, f"{operation}: status {response.status}")
        detail = response.message()
        message = f"{operation}: {detail}" if detail else f"{operation}: status {response.status}"
        raise ApiError(message, response.status, default_code)
