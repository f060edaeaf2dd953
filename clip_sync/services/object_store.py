# clip_sync/services/object_store.py
"""
Object store: Google Drive, where archived clips end up.

The sync engine only sees the ObjectStore protocol. DriveObjectStore talks to
the Drive v3 REST API with a bearer token taken from settings.

  list     GET  /files?fields=files(name),nextPageToken   (paged by 1000)
  quota    GET  /about?fields=storageQuota
  upload   POST /upload/files?uploadType=resumable, then PUT the bytes
  delete   GET  /files?q=name='...'  then  DELETE /files/{id}
"""

import os
from typing import AsyncIterator, Optional, Protocol

import httpx

from clip_sync.config import Settings, settings as default_settings
from clip_sync.utils.logger import get_logger

logger = get_logger(__name__)

_PAGE_SIZE = 1000
_CHUNK_SIZE = 256 * 1024
_UNLIMITED = float("inf")


class ObjectStore(Protocol):
    async def list_object_names(self) -> list[str]:
        """Every object name, all pages materialised."""
        ...

    async def get_available_bytes(self) -> float:
        ...

    async def upload_object(self, local_path: str, name: str) -> bool:
        ...

    async def delete_object(self, name: str) -> bool:
        ...


def _escape_query(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


async def _read_chunks(path: str) -> AsyncIterator[bytes]:
    with open(path, "rb") as f:
        while True:
            chunk = f.read(_CHUNK_SIZE)
            if not chunk:
                break
            yield chunk


class DriveObjectStore:
    def __init__(self, config: Optional[Settings] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        config = config or default_settings
        self._api_url = config.DRIVE_API_URL.rstrip("/")
        self._upload_url = config.DRIVE_UPLOAD_URL.rstrip("/")
        self._token = config.DRIVE_ACCESS_TOKEN
        self._folder_id = config.DRIVE_FOLDER_ID
        self._timeout = config.HTTP_TIMEOUT_SECONDS
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            headers={"Authorization": f"Bearer {self._token}"},
            timeout=self._timeout,
            transport=self._transport,
        )

    def _list_query(self, name: Optional[str] = None) -> str:
        clauses = ["trashed = false"]
        if self._folder_id:
            clauses.append(f"'{_escape_query(self._folder_id)}' in parents")
        if name is not None:
            clauses.append(f"name = '{_escape_query(name)}'")
        return " and ".join(clauses)

    async def list_object_names(self) -> list[str]:
        names: list[str] = []
        page_token = None
        async with self._client() as client:
            while True:
                params = {
                    "fields": "files(name),nextPageToken",
                    "pageSize": _PAGE_SIZE,
                    "q": self._list_query(),
                }
                if page_token:
                    params["pageToken"] = page_token
                response = await client.get(f"{self._api_url}/files", params=params)
                response.raise_for_status()
                data = response.json()
                names.extend(f["name"] for f in data.get("files", []) if f.get("name"))
                page_token = data.get("nextPageToken")
                if not page_token:
                    break
        logger.debug(f"[DRIVE] {len(names)} files listed")
        return names

    async def get_available_bytes(self) -> float:
        async with self._client() as client:
            response = await client.get(f"{self._api_url}/about", params={"fields": "storageQuota"})
            response.raise_for_status()
            quota = response.json().get("storageQuota", {})
        # No limit means an unlimited (e.g. shared drive) account
        if quota.get("limit") is None:
            return _UNLIMITED
        return int(quota["limit"]) - int(quota.get("usage", 0))

    async def upload_object(self, local_path: str, name: str) -> bool:
        metadata = {"name": name, "mimeType": "video/mp4"}
        if self._folder_id:
            metadata["parents"] = [self._folder_id]
        size = os.path.getsize(local_path)
        try:
            async with self._client() as client:
                session = await client.post(
                    f"{self._upload_url}/files",
                    params={"uploadType": "resumable"},
                    json=metadata,
                    headers={"X-Upload-Content-Type": "video/mp4",
                             "X-Upload-Content-Length": str(size)},
                )
                session.raise_for_status()
                location = session.headers["Location"]
                response = await client.put(
                    location,
                    content=_read_chunks(local_path),
                    headers={"Content-Type": "video/mp4", "Content-Length": str(size)},
                )
                response.raise_for_status()
        except (httpx.HTTPError, KeyError) as e:
            logger.error(f"[DRIVE] Upload of {name} failed: {e}")
            return False
        logger.info(f"[DRIVE] Uploaded {name}")
        return True

    async def delete_object(self, name: str) -> bool:
        try:
            async with self._client() as client:
                response = await client.get(
                    f"{self._api_url}/files",
                    params={"fields": "files(id)", "q": self._list_query(name)},
                )
                response.raise_for_status()
                files = response.json().get("files", [])
                if not files:
                    logger.warning(f"[DRIVE] {name} already gone")
                    return True
                # files.delete skips the trash so the quota frees immediately
                response = await client.delete(f"{self._api_url}/files/{files[0]['id']}")
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"[DRIVE] Deletion of {name} failed: {e}")
            return False
        logger.info(f"[DRIVE] {name} deleted")
        return True
