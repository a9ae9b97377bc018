"""Intent handlers for the Dialogflow fulfillment webhook.

Two flows live here. Intake collects name, age and city across turns and
registers the caller. Discovery suggests a random professional of a category,
re-rolls it, and sends the booking link. Flow state is carried in contexts
(see context_service); handlers only read the contexts they were sent and
return the ones the next turn needs.
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional

from sqlalchemy.orm import Session

from app.config import settings
from app.logging_config import get_logger
from app.schemas.dialogflow import OutputContext, WebhookResponse
from app.schemas.whatsapp import MediaAttachment
from app.services.client_service import get_client_by_phone, upsert_client
from app.services.context_service import (
    ContextSet,
    IntakeProgress,
    KnownUser,
    SelectedProfessional,
)
from app.services.intent_service import CATEGORY_BY_INTENT, IntentName, intent_for_category
from app.services.professional_service import (
    build_booking_link,
    find_random_professional,
    professional_summary,
)
from app.services.state_machine import IntakeStep, transition
from app.services.whatsapp_service import WhatsAppService

logger = get_logger("dialogue_service")

MSG_FALLBACK = "I didn't understand that. Could you please rephrase or ask about finding a professional?"
MSG_WELCOME_BACK = "Welcome back, {name}! Would you like me to find a psychologist for you?"
MSG_ASK_NAME = "Hi! I'm the Serene MINDS assistant. Before we begin, what's your name?"
MSG_REPROMPT_NAME = "Sorry, I didn't catch your name. Could you tell me again?"
MSG_ASK_AGE = "Nice to meet you, {name}! How old are you?"
MSG_REPROMPT_AGE = "Could you tell me your age in years?"
MSG_INVALID_AGE = "Hmm, that doesn't look like a valid age. Could you tell me your age in years?"
MSG_ASK_CITY = "Thanks! Which city are you in?"
MSG_REPROMPT_CITY = "Which city do you live in?"
MSG_REGISTERED = (
    "Thanks {name}, you're all set! Tell me a little about what's been on your mind, "
    "or ask me to find a Clinical Psychologist, a Counseling Psychologist or a Wellness Buddy."
)
MSG_PROBLEM_NOTED = (
    "Thank you for sharing that. Would you like to talk to a Clinical Psychologist, "
    "a Counseling Psychologist or a Wellness Buddy?"
)
MSG_FOUND_PROFESSIONAL = (
    "I found a {category}: {name}. They speak {languages}. "
    "Would you like to book a session, or should I suggest someone else?"
)
MSG_NO_PROFESSIONAL = "Sorry, no {category} found at the moment. Please try again later."
MSG_SPECIFY_EXPERTISE = "Please specify an area of expertise."
MSG_BOOK_NEEDS_SUGGESTION = "Please ask me to recommend a professional first, then I can share a booking link."
MSG_BOOKING_LINK = "Great choice! You can book your session with {name} here: {link}"


@dataclass
class DialogueTurn:
    """Everything a handler may look at for one webhook call."""

    intent: IntentName
    db: Session
    whatsapp: WhatsAppService
    contexts: ContextSet
    query_text: str = ""
    parameters: dict[str, Any] = field(default_factory=dict)
    caller_phone: Optional[str] = None
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass
class DialogueReply:
    text: str
    contexts: list[OutputContext] = field(default_factory=list)
    payload: Optional[dict[str, Any]] = None

    def to_response(self) -> WebhookResponse:
        return WebhookResponse(
            fulfillmentText=self.text,
            outputContexts=self.contexts or None,
            payload=self.payload,
            fulfillmentMessages=[{"text": {"text": [self.text]}}],
        )


Handler = Callable[[DialogueTurn], Awaitable[DialogueReply]]


# ── parameter parsing ────────────────────────────────────────────────


def _first_present(parameters: dict[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = parameters.get(key)
        if value not in (None, "", [], {}):
            return value
    return None


def extract_person_name(parameters: dict[str, Any]) -> Optional[str]:
    value = _first_present(parameters, ("person", "given-name", "name"))
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, dict):
        value = value.get("name")
    if value is None:
        return None
    name = str(value).strip()
    return name or None


def extract_age(parameters: dict[str, Any]) -> Any:
    """Raw age as supplied; validated later by parse_age."""
    value = _first_present(parameters, ("age", "number"))
    if isinstance(value, dict):
        value = value.get("amount")
    return value


def extract_city(parameters: dict[str, Any]) -> Optional[str]:
    value = _first_present(parameters, ("geo-city", "city", "location"))
    if isinstance(value, dict):
        value = value.get("city") or value.get("subadmin-area")
    if value is None:
        return None
    city = str(value).strip()
    return city or None


def parse_age(value: Any) -> Optional[int]:
    """Age in whole years if it lies in (0, 150], else None. Fractions are rejected."""
    if value is None or isinstance(value, bool):
        return None
    try:
        age = float(str(value).strip())
    except ValueError:
        return None
    if not age.is_integer() or not 0 < age <= 150:
        return None
    return int(age)


# ── notifications ────────────────────────────────────────────────────


async def _notify(
    turn: DialogueTurn,
    campaign: str,
    params: list[str],
    *,
    user_name: Optional[str] = None,
    media: Optional[MediaAttachment] = None,
) -> bool:
    if not turn.caller_phone:
        logger.info(f"No caller phone, skipping {campaign}")
        return False
    result = await turn.whatsapp.send_template(turn.caller_phone, campaign, params, user_name=user_name, media=media)
    return result.log_failure(logger, f"WhatsApp {campaign}", {"destination": turn.caller_phone})


# ── intake flow ──────────────────────────────────────────────────────


def _intake_reply(turn: DialogueTurn, progress: IntakeProgress, text: str) -> DialogueReply:
    return DialogueReply(text=text, contexts=[turn.contexts.emit(progress, settings.context_lifespan)])


async def handle_welcome(turn: DialogueTurn) -> DialogueReply:
    client = get_client_by_phone(turn.db, turn.caller_phone) if turn.caller_phone else None
    if client and client.name:
        known = KnownUser(client_id=client.id, name=client.name)
        return DialogueReply(
            text=MSG_WELCOME_BACK.format(name=client.name),
            contexts=[turn.contexts.emit(known, settings.known_user_lifespan)],
        )
    return _intake_reply(turn, IntakeProgress(step=IntakeStep.AWAIT_NAME), MSG_ASK_NAME)


async def handle_collect_user_info(turn: DialogueTurn) -> DialogueReply:
    progress = turn.contexts.read(IntakeProgress)
    if progress is None or progress.step == IntakeStep.REGISTERED:
        progress = IntakeProgress(step=IntakeStep.AWAIT_NAME)

    if progress.step == IntakeStep.AWAIT_NAME:
        return _collect_name(turn, progress)
    if progress.step == IntakeStep.AWAIT_AGE:
        return await _collect_age(turn, progress)
    return await _collect_location(turn, progress)


def _collect_name(turn: DialogueTurn, progress: IntakeProgress) -> DialogueReply:
    name = extract_person_name(turn.parameters)
    if not name:
        progress.step = transition(progress.step, IntakeStep.AWAIT_NAME)
        return _intake_reply(turn, progress, MSG_REPROMPT_NAME)

    progress.name = name
    progress.step = transition(progress.step, IntakeStep.AWAIT_AGE)
    return _intake_reply(turn, progress, MSG_ASK_AGE.format(name=name))


async def _collect_age(turn: DialogueTurn, progress: IntakeProgress) -> DialogueReply:
    age = extract_age(turn.parameters)
    if age is None:
        progress.step = transition(progress.step, IntakeStep.AWAIT_AGE)
        return _intake_reply(turn, progress, MSG_REPROMPT_AGE)

    progress.age = age
    if progress.location:
        return await _complete_intake(turn, progress)

    progress.step = transition(progress.step, IntakeStep.AWAIT_LOCATION)
    return _intake_reply(turn, progress, MSG_ASK_CITY)


async def _collect_location(turn: DialogueTurn, progress: IntakeProgress) -> DialogueReply:
    city = extract_city(turn.parameters)
    if not city:
        progress.step = transition(progress.step, IntakeStep.AWAIT_LOCATION)
        return _intake_reply(turn, progress, MSG_REPROMPT_CITY)

    progress.location = city
    return await _complete_intake(turn, progress)


async def _complete_intake(turn: DialogueTurn, progress: IntakeProgress) -> DialogueReply:
    age = parse_age(progress.age)
    if age is None:
        logger.info(f"Rejecting age {progress.age!r}, asking again")
        progress.step = transition(progress.step, IntakeStep.AWAIT_AGE)
        progress.age = None
        return _intake_reply(turn, progress, MSG_INVALID_AGE)

    transition(progress.step, IntakeStep.REGISTERED)

    if not turn.caller_phone:
        logger.warning("Intake finished without a caller phone, client not stored")
        return DialogueReply(text=MSG_REGISTERED.format(name=progress.name))

    client = upsert_client(
        turn.db,
        {"name": progress.name, "age": age, "city": progress.location},
        phone_no=turn.caller_phone,
    )

    await _notify(turn, settings.welcome_campaign, [client.name], user_name=client.name)
    catalogue_media = None
    if settings.catalogue_media_url:
        catalogue_media = MediaAttachment(url=settings.catalogue_media_url, filename="catalogue.pdf")
    await _notify(turn, settings.catalogue_campaign, [client.name], user_name=client.name, media=catalogue_media)

    return DialogueReply(text=MSG_REGISTERED.format(name=client.name))


async def handle_describe_problem(turn: DialogueTurn) -> DialogueReply:
    problem = (turn.query_text or "").strip()
    if problem and turn.caller_phone:
        upsert_client(turn.db, {"q_and_a": {"problem": problem}}, phone_no=turn.caller_phone, merge_q_and_a=True)
    return DialogueReply(text=MSG_PROBLEM_NOTED)


# ── discovery flow ───────────────────────────────────────────────────


async def suggest_professional(turn: DialogueTurn, area_of_expertise: str) -> DialogueReply:
    professional = find_random_professional(turn.db, area_of_expertise)
    if professional is None:
        return DialogueReply(text=MSG_NO_PROFESSIONAL.format(category=area_of_expertise))

    summary = professional_summary(professional)
    booking_link = build_booking_link(professional)

    await _notify(
        turn,
        settings.profile_campaign,
        [summary["full_name"], area_of_expertise, summary["languages"]],
        media=MediaAttachment(url=summary["photo_url"], filename=f"{summary['full_name']}.jpg"),
    )

    selected = SelectedProfessional(
        professional=summary,
        booking_link=booking_link,
        area_of_expertise=area_of_expertise,
    )
    return DialogueReply(
        text=MSG_FOUND_PROFESSIONAL.format(
            category=area_of_expertise,
            name=summary["full_name"],
            languages=summary["languages"],
        ),
        contexts=[turn.contexts.emit(selected, settings.context_lifespan)],
        payload={"professional": summary, "booking_link": booking_link},
    )


async def handle_category_professional(turn: DialogueTurn) -> DialogueReply:
    return await suggest_professional(turn, CATEGORY_BY_INTENT[turn.intent])


async def handle_professional_by_expertise(turn: DialogueTurn) -> DialogueReply:
    area_of_expertise = str(turn.parameters.get("area_of_expertise") or "").strip()
    if not area_of_expertise:
        return DialogueReply(text=MSG_SPECIFY_EXPERTISE)
    return await suggest_professional(turn, area_of_expertise)


async def handle_book_session(turn: DialogueTurn) -> DialogueReply:
    selected = turn.contexts.read(SelectedProfessional)
    if selected is None:
        return DialogueReply(text=MSG_BOOK_NEEDS_SUGGESTION)

    name = selected.professional.get("full_name", "your professional")
    await _notify(turn, settings.booking_campaign, [name, selected.booking_link])
    return DialogueReply(text=MSG_BOOKING_LINK.format(name=name, link=selected.booking_link))


async def handle_suggest_another(turn: DialogueTurn) -> DialogueReply:
    selected = turn.contexts.read(SelectedProfessional)
    area_of_expertise = selected.area_of_expertise if selected else settings.default_expertise

    intent = intent_for_category(area_of_expertise)
    if intent is None:
        return await suggest_professional(turn, area_of_expertise)

    turn.intent = intent
    return await HANDLERS[intent](turn)


async def handle_fallback(turn: DialogueTurn) -> DialogueReply:
    return DialogueReply(text=MSG_FALLBACK)


HANDLERS: dict[IntentName, Handler] = {
    IntentName.WELCOME: handle_welcome,
    IntentName.COLLECT_USER_INFO: handle_collect_user_info,
    IntentName.DESCRIBE_PROBLEM: handle_describe_problem,
    IntentName.GET_CLINICAL_PROFESSIONAL: handle_category_professional,
    IntentName.GET_COUNSELING_PROFESSIONAL: handle_category_professional,
    IntentName.GET_SCHOLAR_PROFESSIONAL: handle_category_professional,
    IntentName.GET_PROFESSIONAL_BY_EXPERTISE: handle_professional_by_expertise,
    IntentName.BOOK_PSYCHOLOGIST_SESSION: handle_book_session,
    IntentName.SUGGEST_ANOTHER_PROFESSIONAL: handle_suggest_another,
    IntentName.DEFAULT_FALLBACK: handle_fallback,
}

_unhandled = set(IntentName) - set(HANDLERS)
if _unhandled:
    raise RuntimeError(f"Intents without a handler: {sorted(i.value for i in _unhandled)}")


async def dispatch(turn: DialogueTurn) -> DialogueReply:
    logger.info(f"Dispatching intent {turn.intent.value}", extra={"context": {"contexts": turn.contexts.names()}})
    return await HANDLERS[turn.intent](turn)
