from app.schemas.dialogflow import OutputContext, WebhookRequest, WebhookResponse
from app.schemas.otp import OtpGenerateRequest, OtpResponse, OtpVerifyRequest
from app.schemas.tally import TallyResponse, TallySubmission
from app.schemas.whatsapp import MediaAttachment, WhatsAppSendRequest, WhatsAppSendResponse

__all__ = [
    "OutputContext",
    "WebhookRequest",
    "WebhookResponse",
    "OtpGenerateRequest",
    "OtpVerifyRequest",
    "OtpResponse",
    "TallySubmission",
    "TallyResponse",
    "MediaAttachment",
    "WhatsAppSendRequest",
    "WhatsAppSendResponse",
]
