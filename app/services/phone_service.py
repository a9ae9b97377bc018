import re
from typing import Optional

from app.config import settings

_NON_DIGITS = re.compile(r"\D")


def normalize_phone(raw: Optional[str], country_code: Optional[str] = None) -> str:
    """Reduce a phone number to digits, swapping a single trunk "0" for the country code.

    "+91 98765-43210" -> "919876543210"
    "098765432" -> "9198765432"

    No length or format validation: anything else comes back as its digits.
    Never raises; None or non-string input yields "".
    """
    if raw is None:
        return ""
    digits = _NON_DIGITS.sub("", str(raw))
    if digits.startswith("0"):
        code = country_code if country_code is not None else settings.country_calling_code
        digits = f"{_NON_DIGITS.sub('', code)}{digits[1:]}"
    return digits
