"""
FirestarterClient - High-level async client for Pipe storage.

Example:
    >>> async with FirestarterClient(SQLiteStorage("state")) as fs:
    ...     await fs.login("myusername", "mypassword")
    ...     result = await fs.upload(b"hello", "hello.txt")
    ...     data = await fs.download("hello.txt")
"""
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import aiofiles

from .core.api import APIConfig, AuthSession, HTTPTransport, StorageGateway, ProgressCallback
from .core.exceptions import AuthorizationError, ValidationError
from .core.hashing import ContentAddresser
from .core.logging import get_logger
from .core.models import Account, Authenticated, Balance, FileRecord, PublicLink, UploadResult
from .core.storage import (
    CredentialStore,
    DEFAULT_MAX_FILES,
    FileManifestStore,
    KeyValueStorage,
    MemoryStorage,
)


class FirestarterClient:
    """
    High-level async client with local credential and manifest persistence.

    Holds the current account, adopts renewed token snapshots returned by
    the gateway and re-persists them, and tracks uploads in a manifest
    scoped to the account.

    Usage:
        >>> client = FirestarterClient(SQLiteStorage("state"))
        >>> if client.resume() is None:
        ...     await client.login("myusername", "mypassword")
        >>> await client.get_balance()
        >>> await client.close()
    """

    def __init__(
        self,
        storage: Optional[KeyValueStorage] = None,
        *,
        config: Optional[APIConfig] = None,
        addresser: Optional[ContentAddresser] = None,
        gateway: Optional[StorageGateway] = None,
        max_files: int = DEFAULT_MAX_FILES
    ):
        """
        Initialize client.

        Args:
            storage: Local key-value storage (in-memory if not provided)
            config: API configuration
            addresser: Content addresser for upload identifiers
            gateway: Pre-built gateway (config and addresser are then ignored)
            max_files: Manifest capacity per account
        """
        self._storage = storage if storage is not None else MemoryStorage()
        self._credentials = CredentialStore(self._storage)
        self._max_files = max_files
        self._logger = get_logger('firestarter.client')

        if gateway is None:
            transport = HTTPTransport(config)
            gateway = StorageGateway(
                transport=transport,
                auth=AuthSession(transport),
                addresser=addresser,
            )
            self._owns_gateway = True
        else:
            self._owns_gateway = False
        self._gateway = gateway

        self._account: Optional[Account] = None

    @property
    def gateway(self) -> StorageGateway:
        return self._gateway

    @property
    def account(self) -> Optional[Account]:
        """Current account snapshot, or None when logged out."""
        return self._account

    @property
    def credentials(self) -> CredentialStore:
        return self._credentials

    @property
    def manifest(self) -> FileManifestStore:
        """Manifest scoped to the current account."""
        return FileManifestStore.for_account(self._storage, self._require_account(), self._max_files)

    @property
    def is_logged_in(self) -> bool:
        return self._account is not None

    async def __aenter__(self) -> 'FirestarterClient':
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Close the gateway if this client created it."""
        if self._owns_gateway:
            await self._gateway.close()

    # Session

    async def create_account(self, username: str, password: str) -> Account:
        """Create an account, make it current and save it."""
        account = await self._gateway.create_account(username, password)
        self._set_account(account)
        return account

    async def login(self, username: str, password: str) -> Account:
        """Login, make the account current and save it."""
        account = await self._gateway.login(username, password)
        self._set_account(account)
        return account

    def resume(self) -> Optional[Account]:
        """Load saved credentials, if any, and make them current."""
        account = self._credentials.load()
        if account is not None:
            self._account = account
            self._logger.info(f"Resumed saved account {account.username}")
        return account

    def logout(self) -> None:
        """
        Forget the current account and clear saved credentials.

        The manifest is kept so files uploaded earlier stay listed after
        the next login.
        """
        if self._account is not None:
            self._gateway.auth.forget(self._account.username)
        self._account = None
        self._credentials.clear()

    # Operations

    async def get_balance(self) -> Balance:
        return self._adopt(await self._gateway.get_balance(self._require_account()))

    async def upload(
        self,
        source: Union[bytes, bytearray, str, Path],
        file_name: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> UploadResult:
        """
        Upload bytes or a local file and record it in the manifest.

        Args:
            source: File content, or path of a local file
            file_name: Name to store under (defaults to the path's name)
            on_progress: Called with integer percent while sending
            metadata: Extra data kept with the manifest record

        Returns:
            UploadResult; keep ``display_name`` to download the file later

        Raises:
            ValidationError: If no file name can be determined
            LocalStorageError: If the manifest cannot be written
        """
        if isinstance(source, (str, Path)):
            path = Path(source)
            async with aiofiles.open(path, 'rb') as f:
                data = await f.read()
            file_name = file_name or path.name
        else:
            data = bytes(source)

        if not file_name:
            raise ValidationError('File name is required when uploading raw bytes')

        result = self._adopt(await self._gateway.upload_file(
            self._require_account(), data, file_name, on_progress=on_progress
        ))
        self.manifest.upsert(FileRecord.from_upload(result, metadata))
        return result

    async def download(self, file_name: str) -> bytes:
        """Download by the name the file was uploaded under."""
        return self._adopt(await self._gateway.download_file(self._require_account(), file_name))

    async def download_to(self, file_name: str, destination: Union[str, Path]) -> Path:
        """
        Download a file and write it to ``destination``.

        If ``destination`` is a directory the file keeps its name.
        """
        data = await self.download(file_name)
        path = Path(destination)
        if path.is_dir():
            path = path / Path(file_name).name
        async with aiofiles.open(path, 'wb') as f:
            await f.write(data)
        return path

    async def delete(self, file_name: str) -> int:
        """
        Delete a file and drop its manifest records.

        Returns:
            Number of manifest records removed
        """
        self._adopt(await self._gateway.delete_file(self._require_account(), file_name))
        return self.manifest.remove_by_name(file_name)

    def list_files(self) -> List[FileRecord]:
        """Files uploaded by the current account, most recent first."""
        return self.manifest.list()

    def get_file(self, identifier: str) -> Optional[FileRecord]:
        return self.manifest.get(identifier)

    async def create_public_link(
        self,
        file_name: str,
        custom_title: Optional[str] = None,
        custom_description: Optional[str] = None
    ) -> PublicLink:
        return self._adopt(await self._gateway.create_public_link(
            self._require_account(), file_name, custom_title, custom_description
        ))

    async def delete_public_link(self, link_hash: str) -> None:
        self._adopt(await self._gateway.delete_public_link(self._require_account(), link_hash))

    async def public_download(self, link_hash: str) -> bytes:
        return await self._gateway.public_download(link_hash)

    async def exchange(self, amount_sol: float) -> float:
        """Exchange SOL for PIPE; returns the PIPE amount minted."""
        return self._adopt(await self._gateway.exchange_currency(self._require_account(), amount_sol))

    # Internals

    def _require_account(self) -> Account:
        if self._account is None:
            raise AuthorizationError('Not logged in. Call login(), create_account() or resume() first.')
        return self._account

    def _set_account(self, account: Account) -> None:
        self._account = account
        self._credentials.save(account)

    def _adopt(self, result: Authenticated):
        if result.refreshed and result.account is not self._account:
            self._logger.debug(f"Adopting renewed tokens for {result.account.username}")
            self._set_account(result.account)
        return result.value
