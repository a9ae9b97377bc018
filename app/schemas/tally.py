from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class TallyOption(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    text: Optional[str] = None


class TallyField(BaseModel):
    model_config = ConfigDict(extra="allow")

    key: str
    type: str
    label: Optional[str] = None
    value: Any = None
    options: Optional[list[TallyOption]] = None


class TallyData(BaseModel):
    model_config = ConfigDict(extra="allow")

    fields: list[TallyField] = Field(default_factory=list)


class TallySubmission(BaseModel):
    model_config = ConfigDict(extra="allow")

    eventId: Optional[str] = None
    data: Optional[TallyData] = None


class TallyResponse(BaseModel):
    success: bool
    client: Optional[dict[str, Any]] = None
    transformedData: Optional[dict[str, Any]] = None
    message: Optional[str] = None
