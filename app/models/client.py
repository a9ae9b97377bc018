from sqlalchemy import JSON, Column, DateTime, Integer, Text
from sqlalchemy.dialects.postgresql import JSONB

from app.database import Base


class Client(Base):
    """A therapy seeker. Identified by phone_no or email for upserts."""

    __tablename__ = "client"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text)
    age = Column(Integer)
    email = Column(Text, unique=True)
    phone_no = Column(Text, unique=True)  # digits only, with country code
    sex = Column(Text)
    city = Column(Text)
    zipcode = Column(Text)
    photo_url = Column(Text)
    uid = Column(Text)
    q_and_a = Column(JSON().with_variant(JSONB, "postgresql"))
    session_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "age": self.age,
            "email": self.email,
            "phone_no": self.phone_no,
            "sex": self.sex,
            "city": self.city,
            "zipcode": self.zipcode,
            "photo_url": self.photo_url,
            "uid": self.uid,
            "q_and_a": self.q_and_a,
            "session_count": self.session_count,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
