from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class OutputContext(BaseModel):
    name: str
    lifespanCount: Optional[int] = None
    parameters: dict[str, Any] = Field(default_factory=dict)


class Intent(BaseModel):
    model_config = ConfigDict(extra="allow")

    displayName: Optional[str] = None
    name: Optional[str] = None


class QueryResult(BaseModel):
    model_config = ConfigDict(extra="allow")

    queryText: Optional[str] = None
    parameters: dict[str, Any] = Field(default_factory=dict)
    intent: Optional[Intent] = None
    outputContexts: Optional[list[OutputContext]] = None
    languageCode: Optional[str] = None


class OriginalDetectIntentRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    source: Optional[str] = None
    payload: dict[str, Any] = Field(default_factory=dict)


class WebhookRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    responseId: Optional[str] = None
    session: Optional[str] = None
    queryResult: QueryResult = Field(default_factory=QueryResult)
    outputContexts: Optional[list[OutputContext]] = None
    originalDetectIntentRequest: Optional[OriginalDetectIntentRequest] = Field(
        default=None,
        validation_alias=AliasChoices("originalDetectIntentRequest", "original_detect_intent_request"),
    )

    @property
    def intent_name(self) -> Optional[str]:
        if self.queryResult.intent is None:
            return None
        return self.queryResult.intent.displayName or None

    @property
    def contexts(self) -> list[OutputContext]:
        if self.queryResult.outputContexts is not None:
            return self.queryResult.outputContexts
        return self.outputContexts or []

    @property
    def channel_payload(self) -> dict[str, Any]:
        if self.originalDetectIntentRequest is None:
            return {}
        return self.originalDetectIntentRequest.payload or {}


class WebhookResponse(BaseModel):
    fulfillmentText: str
    outputContexts: Optional[list[OutputContext]] = None
    payload: Optional[dict[str, Any]] = None
    fulfillmentMessages: Optional[list[dict[str, Any]]] = None
