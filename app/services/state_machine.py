from enum import Enum


class IntakeStep(str, Enum):
    AWAIT_NAME = "await_name"
    AWAIT_AGE = "await_age"
    AWAIT_LOCATION = "await_location"
    REGISTERED = "registered"


# Self-loops are re-prompts after a failed validation.
# AWAIT_LOCATION -> AWAIT_AGE rewinds when the carried age turns out invalid.
# AWAIT_AGE -> REGISTERED happens when the city is already on hand.
VALID_TRANSITIONS = {
    IntakeStep.AWAIT_NAME: [IntakeStep.AWAIT_NAME, IntakeStep.AWAIT_AGE],
    IntakeStep.AWAIT_AGE: [IntakeStep.AWAIT_AGE, IntakeStep.AWAIT_LOCATION, IntakeStep.REGISTERED],
    IntakeStep.AWAIT_LOCATION: [IntakeStep.AWAIT_LOCATION, IntakeStep.AWAIT_AGE, IntakeStep.REGISTERED],
    IntakeStep.REGISTERED: [],
}


class InvalidTransitionError(Exception):
    def __init__(self, from_step: IntakeStep, to_step: IntakeStep):
        self.from_step = from_step
        self.to_step = to_step
        super().__init__(f"Invalid intake transition: {from_step.value} -> {to_step.value}")


def can_transition(from_step: IntakeStep, to_step: IntakeStep) -> bool:
    """Check if transition is valid."""
    return to_step in VALID_TRANSITIONS.get(from_step, [])


def transition(from_step: IntakeStep, to_step: IntakeStep) -> IntakeStep:
    """Perform step transition. Raises InvalidTransitionError if not allowed."""
    if not can_transition(from_step, to_step):
        raise InvalidTransitionError(from_step, to_step)
    return to_step


def is_terminal(step: IntakeStep) -> bool:
    return not VALID_TRANSITIONS.get(step)
