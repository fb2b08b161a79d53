"""
API configuration module.

Provides configuration for the storage API client.
"""
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, Mapping
import os
import ssl


DEFAULT_BASE_URL = 'https://us-west-01-firestarter.pipenetwork.com'
PIPE_TOKEN_MINT = '35mhJor7qTD212YXdLkB8sRzTbaYRXmTzHTCFSDP5voJ'


@dataclass
class ProxyConfig:
    """
    Proxy configuration.

    Supports HTTP and HTTPS proxies.
    """
    url: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None

    def to_aiohttp_proxy(self) -> Optional[str]:
        """Convert to aiohttp proxy format."""
        if not self.url:
            return None

        if self.username and self.password and '://' in self.url:
            protocol, rest = self.url.split('://', 1)
            return f"{protocol}://{self.username}:{self.password}@{rest}"

        return self.url


@dataclass
class SSLConfig:
    """SSL/TLS configuration."""
    verify: bool = True
    cert_file: Optional[str] = None
    key_file: Optional[str] = None
    ca_file: Optional[str] = None
    check_hostname: bool = True

    def create_ssl_context(self):
        """Create SSL context from configuration (False disables verification)."""
        if not self.verify:
            return False

        context = ssl.create_default_context()

        if self.ca_file:
            context.load_verify_locations(self.ca_file)

        if self.cert_file:
            context.load_cert_chain(
                self.cert_file,
                keyfile=self.key_file
            )

        context.check_hostname = self.check_hostname

        return context


@dataclass
class TimeoutConfig:
    """
    Timeout configuration for ordinary JSON calls.

    Uploads never time out; downloads use APIConfig.download_timeout.
    """
    total: float = 30.0
    connect: float = 10.0
    sock_read: Optional[float] = None
    sock_connect: Optional[float] = None

    def to_aiohttp_timeout(self):
        """Convert to aiohttp ClientTimeout."""
        import aiohttp
        return aiohttp.ClientTimeout(
            total=self.total,
            connect=self.connect,
            sock_read=self.sock_read,
            sock_connect=self.sock_connect
        )


@dataclass
class APIConfig:
    """
    Complete API configuration.

    Centralizes all configuration options for the storage API client.
    """
    base_url: str = DEFAULT_BASE_URL

    user_agent: str = 'firestarter-py/1.0.0'

    proxy: Optional[ProxyConfig] = None
    ssl: SSLConfig = field(default_factory=SSLConfig)
    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)

    # Bound for /download-stream and /download, in seconds
    download_timeout: float = 60.0

    # Mint address of the PIPE token queried by /checkCustomToken
    token_mint: str = PIPE_TOKEN_MINT

    extra_headers: Dict[str, str] = field(default_factory=dict)

    log_level: int = 20  # logging.INFO

    # Connection pool settings
    limit_per_host: int = 10
    limit: int = 100

    @classmethod
    def default(cls) -> 'APIConfig':
        """Create default configuration."""
        return cls()

    @classmethod
    def with_proxy(cls, proxy_url: str, **kwargs) -> 'APIConfig':
        """Create configuration with proxy."""
        return cls(
            proxy=ProxyConfig(url=proxy_url),
            **kwargs
        )

    @classmethod
    def insecure(cls, **kwargs) -> 'APIConfig':
        """Create configuration with SSL verification disabled."""
        return cls(
            ssl=SSLConfig(verify=False, check_hostname=False),
            **kwargs
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **kwargs) -> 'APIConfig':
        """
        Create configuration from environment variables.

        Reads FIRESTARTER_BASE_URL, FIRESTARTER_TIMEOUT and FIRESTARTER_PROXY;
        explicit keyword arguments win.
        """
        env = os.environ if environ is None else environ
        options: Dict[str, Any] = {}
        if env.get('FIRESTARTER_BASE_URL'):
            options['base_url'] = env['FIRESTARTER_BASE_URL']
        if env.get('FIRESTARTER_TIMEOUT'):
            options['timeout'] = TimeoutConfig(total=float(env['FIRESTARTER_TIMEOUT']))
        if env.get('FIRESTARTER_PROXY'):
            options['proxy'] = ProxyConfig(url=env['FIRESTARTER_PROXY'])
        options.update(kwargs)
        return cls(**options)

    def url(self, path: str) -> str:
        """Absolute URL for an API path."""
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    def get_connector_kwargs(self) -> Dict[str, Any]:
        """Get kwargs for aiohttp TCPConnector."""
        return {
            'limit': self.limit,
            'limit_per_host': self.limit_per_host,
            'ssl': self.ssl.create_ssl_context(),
        }

    def get_session_kwargs(self) -> Dict[str, Any]:
        """Get kwargs for aiohttp ClientSession."""
        headers = {
            'User-Agent': self.user_agent,
            **self.extra_headers
        }

        return {
            'headers': headers,
            'timeout': self.timeout.to_aiohttp_timeout(),
        }
