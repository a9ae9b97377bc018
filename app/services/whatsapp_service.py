import os
from typing import Optional

import httpx

from app.config import settings
from app.logging_config import get_logger
from app.schemas.whatsapp import MediaAttachment
from app.services.alert_service import alert_critical
from app.services.result import Result

logger = get_logger("whatsapp_service")

AISENSY_URL = os.environ.get("AISENSY_URL", "https://backend.aisensy.com/campaign/t1/api/v2")
AISENSY_API_KEY = (os.environ.get("AISENSY_API_KEY") or "").strip() or None
NOTIFICATION_TIMEOUT_SECONDS = float(os.environ.get("NOTIFICATION_TIMEOUT_SECONDS", "10"))


class WhatsAppService:
    """Sends template campaigns through the AiSensy messaging gateway.

    Delivery is best effort: every failure comes back as ``Result.failure`` and
    nothing is raised to the caller.
    """

    def __init__(
        self,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.api_url = api_url or AISENSY_URL
        self.api_key = api_key if api_key is not None else AISENSY_API_KEY
        self.timeout = timeout if timeout is not None else NOTIFICATION_TIMEOUT_SECONDS

    def build_payload(
        self,
        destination: str,
        campaign_name: str,
        template_params: list[str],
        user_name: Optional[str] = None,
        media: Optional[MediaAttachment] = None,
        buttons: Optional[list[dict]] = None,
    ) -> dict:
        payload = {
            "apiKey": self.api_key,
            "campaignName": campaign_name,
            "destination": destination,
            "userName": user_name or settings.whatsapp_user_name,
            "templateParams": [str(param) for param in template_params],
        }
        if media:
            payload["media"] = media.model_dump()
        if buttons:
            payload["buttons"] = buttons
        return payload

    async def send_template(
        self,
        destination: Optional[str],
        campaign_name: str,
        template_params: list[str],
        user_name: Optional[str] = None,
        media: Optional[MediaAttachment] = None,
        buttons: Optional[list[dict]] = None,
    ) -> Result[dict]:
        if not destination:
            return Result.failure(f"No destination for campaign {campaign_name}", "missing_destination")

        if not self.api_key:
            logger.error("AiSensy API key is missing (AISENSY_API_KEY env var not set)")
            alert_critical("WhatsApp send failed", {"campaign": campaign_name, "error": "missing_api_key"})
            return Result.failure("Messaging gateway credential not configured", "missing_credential")

        payload = self.build_payload(destination, campaign_name, template_params, user_name, media, buttons)

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.api_url, json=payload)
        except Exception as e:
            logger.error(
                f"Error sending WhatsApp template: {e}",
                extra={"context": {"campaign": campaign_name, "destination": destination}},
            )
            return Result.failure(str(e), "network_error")

        body = _safe_json(response)
        if not response.is_success:
            logger.error(
                f"AiSensy rejected campaign {campaign_name}: status={response.status_code}",
                extra={"context": {"destination": destination, "body": body}},
            )
            return Result.failure(f"Gateway returned {response.status_code}: {body}", "gateway_error")

        logger.info(f"WhatsApp template sent: campaign={campaign_name}", extra={"context": {"destination": destination}})
        return Result.success(body)


def url_button(text: str, index: int = 0) -> dict:
    """Dynamic URL button component; authentication templates carry the code here too."""
    return {
        "type": "button",
        "sub_type": "url",
        "index": index,
        "parameters": [{"type": "text", "text": str(text)}],
    }


def _safe_json(response: httpx.Response):
    try:
        return response.json()
    except ValueError:
        return response.text[:500]


_default_service: Optional[WhatsAppService] = None


def get_whatsapp_service() -> WhatsAppService:
    """FastAPI dependency; tests override it with a recorder."""
    global _default_service
    if _default_service is None:
        _default_service = WhatsAppService()
    return _default_service
