from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.config import settings
from app.logging_config import get_logger
from app.schemas.otp import OtpGenerateRequest, OtpResponse, OtpVerifyRequest
from app.services.otp_service import OtpError, OtpStore
from app.services.phone_service import normalize_phone
from app.services.whatsapp_service import WhatsAppService, get_whatsapp_service, url_button

logger = get_logger("otp")

router = APIRouter(prefix="/api/otp")


def get_otp_store(request: Request) -> OtpStore:
    return request.app.state.otp_store


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=OtpResponse(success=False, message=message).model_dump())


@router.post("/generate", response_model=OtpResponse)
async def generate_otp(
    request: OtpGenerateRequest,
    store: OtpStore = Depends(get_otp_store),
    whatsapp: WhatsAppService = Depends(get_whatsapp_service),
):
    phone = normalize_phone(request.phoneNumber)
    if not phone:
        return _error(400, "phoneNumber is required.")

    code = store.issue(phone)
    result = await whatsapp.send_template(phone, settings.otp_campaign, [code], buttons=[url_button(code)])
    if not result.log_failure(logger, "OTP delivery", {"destination": phone}):
        store.discard(phone)
        return _error(502, "Failed to send OTP via WhatsApp.")

    return OtpResponse(success=True, message="OTP sent successfully.")


@router.post("/verify", response_model=OtpResponse)
def verify_otp(request: OtpVerifyRequest, store: OtpStore = Depends(get_otp_store)):
    phone = normalize_phone(request.phoneNumber)
    try:
        store.verify(phone, request.otp)
    except OtpError as e:
        logger.info(f"OTP verification failed: {e.code}", extra={"context": {"phone": phone}})
        return _error(400, e.message)

    return OtpResponse(success=True, message="OTP verified successfully.")
