"""Typed views over Dialogflow contexts.

The webhook keeps no session state of its own: whatever a flow needs on the
next turn travels in the contexts it emits, and the platform sends them back.
Each flow's state is a pydantic model converted to and from the wire context
at the boundary.
"""

from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from app.logging_config import get_logger
from app.schemas.dialogflow import OutputContext
from app.services.state_machine import IntakeStep

logger = get_logger("context_service")

COLLECT_USER_INFO = "collect_user_info"
SELECTED_PROFESSIONAL = "selected_professional"
KNOWN_USER = "known_user"

S = TypeVar("S", bound="ContextState")


def short_context_name(name: str) -> str:
    """`projects/p/agent/sessions/s/contexts/known_user` -> `known_user`."""
    return name.rstrip("/").rsplit("/", 1)[-1]


class ContextState(BaseModel):
    """Base for flow state carried inside one named context."""

    context_name: str = ""

    @classmethod
    def from_parameters(cls: Type[S], parameters: dict[str, Any]) -> Optional[S]:
        try:
            return cls.model_validate(parameters)
        except ValidationError as e:
            logger.warning(f"Discarding malformed {cls.__name__} context: {e.errors()[:3]}")
            return None

    def to_parameters(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True, exclude={"context_name"})


class IntakeProgress(ContextState):
    context_name: str = COLLECT_USER_INFO

    step: IntakeStep = IntakeStep.AWAIT_NAME
    name: Optional[str] = None
    age: Optional[Any] = None  # raw until validated at the location step
    location: Optional[str] = None


class SelectedProfessional(ContextState):
    context_name: str = SELECTED_PROFESSIONAL

    professional: dict[str, Any]
    booking_link: str
    area_of_expertise: str


class KnownUser(ContextState):
    context_name: str = KNOWN_USER

    client_id: int
    name: Optional[str] = None


class ContextSet:
    """Incoming contexts of one turn, addressable by short name."""

    def __init__(self, session: Optional[str], contexts: Optional[list[OutputContext]] = None):
        self.session = session or ""
        self._by_name: dict[str, OutputContext] = {}
        for context in contexts or []:
            if context.lifespanCount is not None and context.lifespanCount <= 0:
                continue
            self._by_name[short_context_name(context.name)] = context

    def __contains__(self, short_name: str) -> bool:
        return short_name in self._by_name

    def names(self) -> list[str]:
        return list(self._by_name)

    def parameters(self, short_name: str) -> Optional[dict[str, Any]]:
        context = self._by_name.get(short_name)
        if context is None:
            return None
        return dict(context.parameters or {})

    def read(self, state_cls: Type[S]) -> Optional[S]:
        default_name = state_cls.model_fields["context_name"].default
        params = self.parameters(default_name)
        if params is None:
            return None
        # Dialogflow echoes "<param>.original" keys alongside ours
        cleaned = {k: v for k, v in params.items() if not k.endswith(".original")}
        return state_cls.from_parameters(cleaned)

    def emit(self, state: ContextState, lifespan: int) -> OutputContext:
        return OutputContext(
            name=self.full_name(state.context_name),
            lifespanCount=lifespan,
            parameters=state.to_parameters(),
        )

    def full_name(self, short_name: str) -> str:
        if not self.session:
            return short_name
        return f"{self.session.rstrip('/')}/contexts/{short_name}"
