# clip_sync/schemas/camera_event.py
"""
Bosch camera event as returned by GET /events.
Field names follow Python style; the camelCase wire names are aliases.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class EventType(str, Enum):
    TROUBLE_CONNECT = "TROUBLE_CONNECT"
    MOVEMENT = "MOVEMENT"
    TROUBLE_DISCONNECT = "TROUBLE_DISCONNECT"
    TROUBLE_RECORDING_OFF = "TROUBLE_RECORDING_OFF"
    TROUBLE_RECORDING_ON = "TROUBLE_RECORDING_ON"
    AUDIO_ALARM = "AUDIO_ALARM"


# Only these event types come with a video clip worth archiving
CLIP_EVENT_TYPES = {EventType.MOVEMENT, EventType.AUDIO_ALARM}


class ClipUploadStatus(str, Enum):
    UNKNOWN = "Unknown"
    LOCAL = "Local"
    PENDING = "Pending"
    DONE = "Done"
    UNAVAILABLE = "Unavailable"
    PERMANENTLY_UNAVAILABLE = "Permanently_unavailable"


class CameraEvent(BaseModel):
    id: str
    event_type: str = Field(alias="eventType")   # raw string, Bosch adds types over time
    timestamp: str
    is_favorite: bool = Field(default=False, alias="isFavorite")
    video_clip_upload_status: ClipUploadStatus = Field(
        default=ClipUploadStatus.UNKNOWN, alias="videoClipUploadStatus"
    )
    video_input_id: Optional[str] = Field(default=None, alias="videoInputId")
    title: Optional[str] = None
    is_read: Optional[bool] = Field(default=None, alias="isRead")
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    video_clip_url: Optional[str] = Field(default=None, alias="videoClipUrl")
    video_clip_upload_progress: Optional[int] = Field(default=None, alias="videoClipUploadProgress")

    class Config:
        populate_by_name = True

    @field_validator("video_clip_upload_status", mode="before")
    @classmethod
    def _unknown_status_fallback(cls, value):
        if value is None:
            return ClipUploadStatus.UNKNOWN
        try:
            return ClipUploadStatus(value)
        except ValueError:
            return ClipUploadStatus.UNKNOWN

    @property
    def has_clip(self) -> bool:
        return self.event_type in {t.value for t in CLIP_EVENT_TYPES}

    def __repr__(self):
        return (f"<CameraEvent {self.id} type={self.event_type} at={self.timestamp} "
                f"status={self.video_clip_upload_status.value} fav={self.is_favorite}>")
