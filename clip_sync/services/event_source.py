# clip_sync/services/event_source.py
"""
Event source: the Bosch residential camera cloud.

The sync engine only sees the EventSource protocol. BoschEventSource is the
production implementation: a thin bearer-token HTTP wrapper over
https://residential.cbs.boschsecurity.com/v7. The access token comes from
settings, acquiring and refreshing it is handled outside this service.

Endpoints:
  GET    /events                      list all events
  GET    /events/{id}/request_clip    ask the camera to export the clip
  GET    /events/{id}/clip.mp4        download an exported clip
  PUT    /events                      {"id", "isFavorite"}
  DELETE /events/{id}
"""

import os
from typing import Optional, Protocol

import httpx

from clip_sync.config import Settings, settings as default_settings
from clip_sync.schemas.camera_event import CameraEvent, ClipUploadStatus
from clip_sync.utils.logger import get_logger

logger = get_logger(__name__)

_CHUNK_SIZE = 64 * 1024


class EventSource(Protocol):
    async def list_events(self) -> list[CameraEvent]:
        ...

    async def request_clip_export(self, event_id: str) -> None:
        """Fire the export; the outcome is only visible by polling the status."""
        ...

    async def get_event_status(self, event_id: str) -> Optional[ClipUploadStatus]:
        """None when the event no longer exists on the camera side."""
        ...

    async def set_favorite(self, event_id: str, is_favorite: bool) -> None:
        ...

    async def delete_event(self, event_id: str) -> None:
        ...

    async def download_clip(self, event_id: str, dest_path: str) -> bool:
        ...


class BoschEventSource:
    def __init__(self, config: Optional[Settings] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        config = config or default_settings
        self._base_url = config.BOSCH_API_URL.rstrip("/")
        self._token = config.BOSCH_ACCESS_TOKEN
        self._verify = config.BOSCH_VERIFY_TLS
        self._timeout = config.HTTP_TIMEOUT_SECONDS
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            headers={"Authorization": f"Bearer {self._token}"},
            verify=self._verify,
            timeout=self._timeout,
            transport=self._transport,
        )

    async def list_events(self) -> list[CameraEvent]:
        async with self._client() as client:
            response = await client.get("/events")
            response.raise_for_status()
            payload = response.json()
        events = [CameraEvent.model_validate(item) for item in payload]
        logger.debug(f"[BOSCH] {len(events)} events listed")
        return events

    async def request_clip_export(self, event_id: str) -> None:
        async with self._client() as client:
            response = await client.get(f"/events/{event_id}/request_clip")
            response.raise_for_status()
        logger.debug(f"[BOSCH] Clip export requested for {event_id}")

    async def get_event_status(self, event_id: str) -> Optional[ClipUploadStatus]:
        # No single-event endpoint, the status comes from the full list
        for event in await self.list_events():
            if event.id == event_id:
                return event.video_clip_upload_status
        return None

    async def set_favorite(self, event_id: str, is_favorite: bool) -> None:
        async with self._client() as client:
            response = await client.put("/events", json={"id": event_id, "isFavorite": is_favorite})
            response.raise_for_status()

    async def delete_event(self, event_id: str) -> None:
        async with self._client() as client:
            response = await client.delete(f"/events/{event_id}")
            response.raise_for_status()

    async def download_clip(self, event_id: str, dest_path: str) -> bool:
        """Stream the clip to dest_path. Returns False on any HTTP or disk error."""
        try:
            async with self._client() as client:
                async with client.stream("GET", f"/events/{event_id}/clip.mp4") as response:
                    if response.status_code != 200:
                        logger.warning(f"[BOSCH] Clip {event_id} returned HTTP {response.status_code}")
                        return False
                    with open(dest_path, "wb") as f:
                        async for chunk in response.aiter_bytes(chunk_size=_CHUNK_SIZE):
                            f.write(chunk)
        except (httpx.HTTPError, OSError) as e:
            logger.error(f"[BOSCH] Download of clip {event_id} failed: {e}")
            if os.path.exists(dest_path):
                os.remove(dest_path)
            return False
        return True
