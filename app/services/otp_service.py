import asyncio
import secrets
import time
from dataclasses import dataclass
from typing import Callable, Optional

from app.logging_config import get_logger

logger = get_logger("otp_service")


class OtpError(Exception):
    def __init__(self, message: str, code: str):
        self.message = message
        self.code = code
        super().__init__(message)


@dataclass
class _OtpEntry:
    code: str
    expires_at: float


class OtpStore:
    """Expiring one-time codes keyed by normalized phone.

    Owned by the application (created at import of app.main, swept by a
    background task between startup and shutdown).
    """

    def __init__(self, ttl_seconds: int = 300, digits: int = 6, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self.digits = digits
        self._clock = clock
        self._entries: dict[str, _OtpEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def issue(self, key: str) -> str:
        code = "".join(str(secrets.randbelow(10)) for _ in range(self.digits))
        self._entries[key] = _OtpEntry(code=code, expires_at=self._clock() + self.ttl_seconds)
        return code

    def discard(self, key: str) -> None:
        self._entries.pop(key, None)

    def verify(self, key: str, code: str) -> None:
        """Consume the code for key. Raises OtpError when missing, expired or wrong."""
        entry = self._entries.get(key)
        if entry is None:
            raise OtpError("No OTP was requested for this number.", "not_found")
        if entry.expires_at <= self._clock():
            self._entries.pop(key, None)
            raise OtpError("OTP has expired.", "expired")
        candidate = str(code).strip()
        if candidate.isdigit():
            # a numeric code loses its leading zeros in JSON
            candidate = candidate.zfill(self.digits)
        if not secrets.compare_digest(entry.code, candidate):
            raise OtpError("Invalid OTP.", "invalid")
        self._entries.pop(key, None)

    def sweep(self) -> int:
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.expires_at <= now]
        for key in expired:
            self._entries.pop(key, None)
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()


async def otp_sweeper_loop(store: OtpStore, interval_seconds: float, sleep_func: Optional[Callable] = None) -> None:
    sleep = sleep_func or asyncio.sleep
    while True:
        try:
            await sleep(interval_seconds)
            removed = store.sweep()
            if removed:
                logger.info(f"Swept {removed} expired OTPs")
        except asyncio.CancelledError:
            break
        except Exception as exc:
            logger.error(f"OTP sweep failed: {exc}")
