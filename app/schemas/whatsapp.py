from typing import Any, Optional

from pydantic import BaseModel, Field


class MediaAttachment(BaseModel):
    url: str
    filename: str


class WhatsAppSendRequest(BaseModel):
    campaignName: str
    destination: str
    userName: Optional[str] = None
    templateParams: list[str] = Field(default_factory=list)
    media: Optional[MediaAttachment] = None


class WhatsAppSendResponse(BaseModel):
    success: bool
    message: str
    responseBody: Optional[Any] = None
    error: Optional[Any] = None
