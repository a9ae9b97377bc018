from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.schemas.whatsapp import WhatsAppSendRequest, WhatsAppSendResponse
from app.services.phone_service import normalize_phone
from app.services.whatsapp_service import WhatsAppService, get_whatsapp_service

router = APIRouter(prefix="/api/whatsapp")


@router.post("/send", response_model=WhatsAppSendResponse, response_model_exclude_none=True)
async def send_whatsapp_message(
    request: WhatsAppSendRequest,
    whatsapp: WhatsAppService = Depends(get_whatsapp_service),
):
    """Relay one template campaign to the messaging gateway."""
    result = await whatsapp.send_template(
        normalize_phone(request.destination),
        request.campaignName,
        request.templateParams,
        user_name=request.userName,
        media=request.media,
    )
    if result.ok:
        return WhatsAppSendResponse(
            success=True,
            message="WhatsApp message sent successfully.",
            responseBody=result.value,
        )

    return JSONResponse(
        status_code=502,
        content=WhatsAppSendResponse(
            success=False,
            message=f"Failed to send WhatsApp message: {result.error_code}",
            error=result.error,
        ).model_dump(exclude_none=True),
    )
