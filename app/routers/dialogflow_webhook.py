from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.logging_config import ContextLoggerAdapter, get_logger
from app.schemas.dialogflow import WebhookRequest, WebhookResponse
from app.services.alert_service import alert_error
from app.services.context_service import ContextSet
from app.services.dialogue_service import DialogueTurn, dispatch
from app.services.intent_service import resolve_intent
from app.services.phone_service import normalize_phone
from app.services.whatsapp_service import WhatsAppService, get_whatsapp_service

logger = get_logger("dialogflow_webhook")

router = APIRouter()

SERVER_ERROR_TEXT = "Something went wrong on the server. Please try again later."


class MissingIntentError(ValueError):
    pass


def _get_request_webhook_secret(request: Request) -> Optional[str]:
    header_secret = request.headers.get("X-Webhook-Secret")
    if header_secret:
        return header_secret.strip()
    query_secret = request.query_params.get("webhook_secret")
    if query_secret:
        return query_secret.strip()
    return None


def _lookup_path(payload: dict[str, Any], dotted: str) -> Any:
    value: Any = payload
    for part in dotted.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def extract_caller_phone(channel_payload: dict[str, Any], fields: Optional[str] = None) -> Optional[str]:
    """First phone-like value under the configured payload paths, normalized. None if absent."""
    for dotted in (fields or settings.phone_payload_fields).split(","):
        dotted = dotted.strip()
        if not dotted:
            continue
        value = _lookup_path(channel_payload, dotted)
        if isinstance(value, (str, int)) and not isinstance(value, bool):
            phone = normalize_phone(str(value))
            if phone:
                return phone
    return None


def build_turn(payload: WebhookRequest, db: Session, whatsapp: WhatsAppService, raw: dict) -> DialogueTurn:
    if not payload.intent_name:
        raise MissingIntentError("queryResult.intent.displayName is required")

    return DialogueTurn(
        intent=resolve_intent(payload.intent_name),
        db=db,
        whatsapp=whatsapp,
        contexts=ContextSet(payload.session, payload.contexts),
        query_text=payload.queryResult.queryText or "",
        parameters=dict(payload.queryResult.parameters or {}),
        caller_phone=extract_caller_phone(payload.channel_payload),
        raw=raw,
    )


@router.post("/api/webhook", response_model=WebhookResponse, response_model_exclude_none=True)
async def dialogflow_webhook(
    request: Request,
    db: Session = Depends(get_db),
    whatsapp: WhatsAppService = Depends(get_whatsapp_service),
):
    """Dialogflow fulfillment: route the matched intent and return the next utterance."""
    expected_secret = settings.dialogflow_webhook_secret.strip()
    if expected_secret and _get_request_webhook_secret(request) != expected_secret:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid webhook secret")

    log = ContextLoggerAdapter(logger, {})
    try:
        raw = await request.json()
        payload = WebhookRequest.model_validate(raw)
        log = ContextLoggerAdapter(logger, {"session": payload.session, "intent": payload.intent_name})
        log.info("Dialogflow webhook received")

        turn = build_turn(payload, db, whatsapp, raw)
        reply = await dispatch(turn)
        db.commit()

        response = reply.to_response()
        return JSONResponse(status_code=200, content=response.model_dump(mode="json", exclude_none=True))

    except Exception as e:
        db.rollback()
        log.error(f"Dialogflow webhook failed: {e}", exc_info=True)
        alert_error("Dialogflow webhook failed", {"error": str(e)[:300]})
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=WebhookResponse(fulfillmentText=SERVER_ERROR_TEXT).model_dump(exclude_none=True),
        )
