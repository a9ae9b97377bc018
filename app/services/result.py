import logging
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass
class Result(Generic[T]):
    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_code: Optional[str] = None

    @staticmethod
    def success(value: T) -> "Result[T]":
        return Result(ok=True, value=value)

    @staticmethod
    def failure(error: str, code: str = "unknown") -> "Result[T]":
        return Result(ok=False, error=error, error_code=code)

    def unwrap_or(self, default: T) -> T:
        return self.value if self.ok else default

    def log_failure(self, logger: logging.Logger, action: str, context: Optional[dict] = None) -> bool:
        """Acknowledge a best-effort outcome: log it if it failed, then carry on.

        Returns ``ok`` so call sites can branch on delivery without re-checking.
        """
        if not self.ok:
            logger.warning(
                f"{action} failed: {self.error}",
                extra={"context": {"action": action, "error_code": self.error_code, **(context or {})}},
            )
        return self.ok
