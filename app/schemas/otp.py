from typing import Any

from pydantic import BaseModel, field_validator


def _as_text(value: Any) -> Any:
    # Clients send phone numbers and codes as JSON numbers as often as strings
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


class OtpGenerateRequest(BaseModel):
    phoneNumber: str

    @field_validator("phoneNumber", mode="before")
    @classmethod
    def phone_as_text(cls, value: Any) -> Any:
        return _as_text(value)


class OtpVerifyRequest(BaseModel):
    phoneNumber: str
    otp: str

    @field_validator("phoneNumber", "otp", mode="before")
    @classmethod
    def values_as_text(cls, value: Any) -> Any:
        return _as_text(value)


class OtpResponse(BaseModel):
    success: bool
    message: str
