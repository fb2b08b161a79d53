"""
Async authentication session.

Derives request headers for an account, renewing its tokens when needed:
cached token -> refresh -> re-login -> legacy app key.
"""
import asyncio
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, Optional

from ..exceptions import ApiError, AuthorizationError, ErrorCode
from ..logging import get_logger
from ..models import Account, TokenSet, utcnow
from .errors import error_from_status
from .transport import HTTPTransport


class AuthMethod(str, Enum):
    """How a set of headers was obtained."""
    CACHED = 'cached'
    REFRESHED = 'refreshed'
    REAUTHENTICATED = 'reauthenticated'
    LEGACY = 'legacy'


@dataclass(frozen=True)
class AuthHeaders:
    """Headers for one request plus the account snapshot they belong to."""
    headers: Dict[str, str]
    account: Account
    method: AuthMethod

    @property
    def renewed(self) -> bool:
        return self.method in (AuthMethod.REFRESHED, AuthMethod.REAUTHENTICATED)


def bearer_headers(access_token: str) -> Dict[str, str]:
    return {'Authorization': f"Bearer {access_token}"}


def legacy_headers(account: Account) -> Dict[str, str]:
    return {
        'X-User-Id': account.user_id,
        'X-User-App-Key': account.user_app_key,
    }


class AuthSession:
    """
    Produces authorization headers for accounts.

    State is evaluated on every call; there is no background timer. Renewal
    is single-flight per username: concurrent callers holding an expired
    account share one refresh/re-login attempt and its resulting snapshot.
    """

    def __init__(
        self,
        transport: HTTPTransport,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize auth session.

        Args:
            transport: HTTP transport shared with the gateway
            clock: Returns the current aware datetime (UTC now by default)
        """
        self._transport = transport
        self._clock = clock or utcnow
        self._latest: Dict[str, Account] = {}
        self._inflight: Dict[str, asyncio.Future] = {}
        self._logger = get_logger('firestarter.auth')

    def now(self) -> datetime:
        return self._clock()

    def latest(self, username: str) -> Optional[Account]:
        """Most recent renewed snapshot seen for ``username``."""
        return self._latest.get(username)

    def forget(self, username: str) -> None:
        """Drop the remembered snapshot for ``username``."""
        self._latest.pop(username, None)

    async def login(self, username: str, password: str) -> TokenSet:
        """
        Exchange credentials for tokens.

        Raises:
            ApiError: INVALID_CREDENTIALS on 401, mapped status otherwise
        """
        response = await self._transport.request(
            'POST', '/auth/login',
            json={'username': username, 'password': password}
        )
        if response.status == 401:
            raise ApiError('Invalid username or password', 401, ErrorCode.INVALID_CREDENTIALS)
        if not response.ok:
            raise error_from_status(response.status, response.message() or 'Login failed')
        return self.parse_tokens(response.json())

    async def refresh(self, refresh_token: str) -> TokenSet:
        """
        Exchange a refresh token for fresh tokens.

        Raises:
            ApiError: If the service rejects the refresh token
        """
        response = await self._transport.request(
            'POST', '/auth/refresh',
            json={'refresh_token': refresh_token}
        )
        if not response.ok:
            raise error_from_status(response.status, response.message() or 'Token refresh failed')
        return self.parse_tokens(response.json())

    async def get_headers(self, account: Account) -> AuthHeaders:
        """
        Get authorization headers for ``account``.

        Args:
            account: Account snapshot

        Returns:
            AuthHeaders; ``account`` is a new snapshot when tokens were renewed

        Raises:
            AuthorizationError: If no credential path is left
        """
        now = self.now()
        if account.is_token_fresh(now):
            return AuthHeaders(bearer_headers(account.access_token), account, AuthMethod.CACHED)

        latest = self._latest.get(account.username)
        if latest is not None and latest.is_token_fresh(now):
            return AuthHeaders(bearer_headers(latest.access_token), latest, AuthMethod.CACHED)

        key = account.username
        flight = self._inflight.get(key)
        if flight is None:
            flight = asyncio.ensure_future(self._renew(account))
            self._inflight[key] = flight
            flight.add_done_callback(lambda done, key=key: self._finish_flight(key, done))
        else:
            self._logger.debug(f"Joining in-flight token renewal for {key}")

        return await asyncio.shield(flight)

    def _finish_flight(self, key: str, flight: asyncio.Future) -> None:
        if self._inflight.get(key) is flight:
            del self._inflight[key]

    async def _renew(self, account: Account) -> AuthHeaders:
        if account.refresh_token:
            try:
                tokens = await self.refresh(account.refresh_token)
                return self._adopt(account, tokens, AuthMethod.REFRESHED)
            except ApiError as e:
                self._logger.warning(f"Token refresh failed for {account.username} ({e.message}), attempting re-login")

        if account.username and account.password:
            try:
                tokens = await self.login(account.username, account.password)
                return self._adopt(account, tokens, AuthMethod.REAUTHENTICATED)
            except ApiError as e:
                self._logger.warning(f"Re-login failed for {account.username} ({e.message})")

        if account.has_legacy_key:
            self._logger.info(f"Falling back to legacy app-key auth for {account.username}")
            return AuthHeaders(legacy_headers(account), account, AuthMethod.LEGACY)

        raise AuthorizationError(
            f"No valid authentication available for {account.username or 'account'}: "
            "refresh, re-login and legacy key all unavailable"
        )

    def _adopt(self, account: Account, tokens: TokenSet, method: AuthMethod) -> AuthHeaders:
        renewed = account.with_tokens(tokens, self.now())
        self._latest[account.username] = renewed
        self._logger.debug(f"Tokens {method.value} for {account.username}, valid until {renewed.token_expiry.isoformat()}")
        return AuthHeaders(bearer_headers(renewed.access_token), renewed, method)

    @staticmethod
    def parse_tokens(data) -> TokenSet:
        """
        Parse a token response body.

        Raises:
            ApiError: UNKNOWN if the body is not a usable token response
        """
        if not isinstance(data, dict) or not data.get('access_token'):
            raise ApiError('Malformed token response', None, ErrorCode.UNKNOWN)
        try:
            return TokenSet.from_response(data)
        except (TypeError, ValueError) as e:
            raise ApiError(f"Malformed token response ({e})", None, ErrorCode.UNKNOWN) from e
