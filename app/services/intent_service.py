from enum import Enum
from typing import Optional

from app.logging_config import get_logger
from app.services.professional_service import (
    CLINICAL_PSYCHOLOGIST,
    COUNSELING_PSYCHOLOGIST,
    WELLNESS_BUDDY,
)

logger = get_logger("intent_service")


class IntentName(str, Enum):
    WELCOME = "Default Welcome Intent"
    COLLECT_USER_INFO = "collectUserInfo"
    DESCRIBE_PROBLEM = "describeProblem"
    GET_CLINICAL_PROFESSIONAL = "getClinicalProfessional"
    GET_COUNSELING_PROFESSIONAL = "getCounselingProfessional"
    GET_SCHOLAR_PROFESSIONAL = "getScholarProfessional"
    GET_PROFESSIONAL_BY_EXPERTISE = "getProfessionalByExpertise"
    BOOK_PSYCHOLOGIST_SESSION = "bookPsychologistSession"
    SUGGEST_ANOTHER_PROFESSIONAL = "suggestAnotherProfessional"
    DEFAULT_FALLBACK = "Default Fallback Intent"


CATEGORY_BY_INTENT = {
    IntentName.GET_CLINICAL_PROFESSIONAL: CLINICAL_PSYCHOLOGIST,
    IntentName.GET_COUNSELING_PROFESSIONAL: COUNSELING_PSYCHOLOGIST,
    IntentName.GET_SCHOLAR_PROFESSIONAL: WELLNESS_BUDDY,
}

INTENT_BY_CATEGORY = {category: intent for intent, category in CATEGORY_BY_INTENT.items()}


def resolve_intent(display_name: Optional[str]) -> IntentName:
    """Exact-match an intent display name; anything unknown is the fallback intent."""
    try:
        return IntentName(display_name)
    except ValueError:
        logger.info(f"Unknown intent {display_name!r}, using fallback")
        return IntentName.DEFAULT_FALLBACK


def intent_for_category(area_of_expertise: str) -> Optional[IntentName]:
    return INTENT_BY_CATEGORY.get(area_of_expertise)
