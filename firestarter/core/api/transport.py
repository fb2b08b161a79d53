"""
Async HTTP transport.

Owns the aiohttp session used by the gateway and the auth session and
turns transport failures into ApiError.
"""
import asyncio
import json
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

import aiohttp

from ..exceptions import ApiError, ErrorCode
from ..logging import get_logger
from .config import APIConfig

# Passed as ``timeout`` to disable every timeout for one request
NO_TIMEOUT = aiohttp.ClientTimeout(total=None, connect=None, sock_read=None, sock_connect=None)


@dataclass
class TransportResponse:
    """Status, body and headers of a completed HTTP exchange."""
    status: int
    body: bytes = b''
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json(self, default: Any = None) -> Any:
        """Decode the body as JSON, returning ``default`` if it is not JSON."""
        if not self.body:
            return default
        try:
            return json.loads(self.body)
        except ValueError:
            return default

    def message(self) -> Optional[str]:
        """Server-supplied error message, if the body carries one."""
        data = self.json()
        if isinstance(data, dict):
            for key in ('message', 'error', 'detail'):
                value = data.get(key)
                if isinstance(value, str) and value:
                    return value
        return None


class HTTPTransport:
    """
    Asynchronous HTTP transport.

    Features:
    - Lazily created, pooled aiohttp session
    - Configurable proxy, SSL, timeouts
    - Per-request timeout override

    Example:
        >>> async with HTTPTransport(APIConfig.default()) as transport:
        ...     response = await transport.request('POST', '/auth/login', json={...})
    """

    def __init__(self, config: Optional[APIConfig] = None):
        """
        Initialize transport.

        Args:
            config: API configuration (uses defaults if not provided)
        """
        self._config = config or APIConfig.default()
        self._session: Optional[aiohttp.ClientSession] = None
        self._connector: Optional[aiohttp.TCPConnector] = None
        self._logger = get_logger('firestarter.api')

    @property
    def config(self) -> APIConfig:
        """Get current configuration."""
        return self._config

    async def __aenter__(self) -> 'HTTPTransport':
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure session is created and open."""
        if self._session is None or self._session.closed:
            self._connector = aiohttp.TCPConnector(
                **self._config.get_connector_kwargs()
            )
            self._session = aiohttp.ClientSession(
                connector=self._connector,
                **self._config.get_session_kwargs()
            )
        return self._session

    async def close(self):
        """Close transport and release resources."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

        if self._connector and not self._connector.closed:
            await self._connector.close()
        self._connector = None

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[Mapping[str, str]] = None,
        data: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None
    ) -> TransportResponse:
        """
        Issue one HTTP request.

        Args:
            method: HTTP method
            path: API path relative to the base URL
            json: JSON body
            params: Query string parameters
            data: Raw body (bytes or async iterable)
            headers: Extra request headers
            timeout: Timeout override (session default if None)

        Returns:
            TransportResponse for any HTTP status

        Raises:
            ApiError: NETWORK_ERROR on connection failures, TIMEOUT on timeouts
        """
        session = await self._ensure_session()
        url = self._config.url(path)

        kwargs: Dict[str, Any] = {}
        if json is not None:
            kwargs['json'] = json
        if data is not None:
            kwargs['data'] = data
        if params:
            kwargs['params'] = dict(params)
        if headers:
            kwargs['headers'] = dict(headers)
        if timeout is not None:
            kwargs['timeout'] = timeout
        if self._config.proxy:
            kwargs['proxy'] = self._config.proxy.to_aiohttp_proxy()

        self._logger.debug(f"{method} {url}")

        try:
            async with session.request(method, url, **kwargs) as response:
                body = await response.read()
                self._logger.debug(f"{method} {url} -> {response.status} ({len(body)} bytes)")
                return TransportResponse(
                    status=response.status,
                    body=body,
                    headers=dict(response.headers),
                )
        except asyncio.TimeoutError as e:
            self._logger.error(f"Timeout: {method} {url}")
            raise ApiError(f"Request timed out: {method} {path}", None, ErrorCode.TIMEOUT) from e
        except aiohttp.ClientError as e:
            self._logger.error(f"Network error: {method} {url}: {e}")
            raise ApiError(f"Network error: {e}", None, ErrorCode.NETWORK_ERROR) from e
