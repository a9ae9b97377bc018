import random
from typing import Optional

from sqlalchemy.orm import Session

from app.config import settings
from app.logging_config import get_logger
from app.models import Professional

logger = get_logger("professional_service")

CLINICAL_PSYCHOLOGIST = "Clinical Psychologist"
COUNSELING_PSYCHOLOGIST = "Counseling Psychologist"
WELLNESS_BUDDY = "Wellness Buddy"

EXPERTISE_TAGS = (CLINICAL_PSYCHOLOGIST, COUNSELING_PSYCHOLOGIST, WELLNESS_BUDDY)


def find_random_professional(
    db: Session,
    area_of_expertise: str,
    rng: random.Random | None = None,
) -> Optional[Professional]:
    """Pick one professional with exactly this expertise tag, uniformly at random.

    No ranking or availability filtering. Returns None when nobody matches.
    """
    professionals = db.query(Professional).filter(Professional.area_of_expertise == area_of_expertise).all()
    if not professionals:
        logger.info(f"No professionals for expertise={area_of_expertise}")
        return None

    chooser = rng or random
    return chooser.choice(professionals)


def build_booking_link(professional: Professional) -> str:
    booking_id = professional.booking_id or professional.id
    return settings.booking_url_template.format(booking_id=booking_id)


def photo_url_for(professional: Professional) -> str:
    return professional.photo_url or settings.default_photo_url


def languages_for(professional: Professional) -> str:
    languages = professional.language_list
    return ", ".join(languages) if languages else settings.default_languages


def professional_summary(professional: Professional) -> dict:
    """JSON-safe snapshot carried in dialogue contexts and rich payloads."""
    return {
        "id": professional.id,
        "full_name": professional.full_name,
        "area_of_expertise": professional.area_of_expertise,
        "photo_url": photo_url_for(professional),
        "languages": languages_for(professional),
        "booking_id": professional.booking_id,
        "about_me": professional.about_me,
    }
