from app.services.phone_service import normalize_phone
from app.services.result import Result
from app.services.state_machine import (
    IntakeStep,
    InvalidTransitionError,
    can_transition,
    is_terminal,
    transition,
)
