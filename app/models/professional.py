from sqlalchemy import JSON, Column, Integer, Text
from sqlalchemy.dialects.postgresql import JSONB

from app.database import Base


class Professional(Base):
    """Therapist directory row. Read-only from the dialogue's point of view."""

    __tablename__ = "professional"

    id = Column(Integer, primary_key=True, autoincrement=True)
    full_name = Column(Text, nullable=False)
    email = Column(Text)
    phone = Column(Text)
    photo_url = Column(Text)
    area_of_expertise = Column(Text, index=True)  # Clinical Psychologist, Counseling Psychologist, Wellness Buddy
    about_me = Column(Text)
    languages = Column(JSON().with_variant(JSONB, "postgresql"))
    booking_id = Column(Text)

    @property
    def language_list(self) -> list[str]:
        """Languages as a list; the column holds a JSON list or a comma-separated string."""
        if not self.languages:
            return []
        if isinstance(self.languages, str):
            return [lang.strip() for lang in self.languages.split(",") if lang.strip()]
        return [str(lang).strip() for lang in self.languages if str(lang).strip()]
