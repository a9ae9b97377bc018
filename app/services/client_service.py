from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy.orm import Session

from app.logging_config import get_logger
from app.models import Client

logger = get_logger("client_service")

UPSERTABLE_FIELDS = {
    "name",
    "age",
    "email",
    "phone_no",
    "sex",
    "city",
    "zipcode",
    "photo_url",
    "uid",
    "q_and_a",
}


def get_client_by_phone(db: Session, phone_no: str) -> Optional[Client]:
    if not phone_no:
        return None
    return db.query(Client).filter(Client.phone_no == phone_no).first()


def get_client_by_email(db: Session, email: str) -> Optional[Client]:
    if not email:
        return None
    return db.query(Client).filter(Client.email == email).first()


def upsert_client(
    db: Session,
    fields: dict[str, Any],
    *,
    phone_no: Optional[str] = None,
    email: Optional[str] = None,
    merge_q_and_a: bool = False,
) -> Client:
    """Create or update the single client owning this phone number (or, failing that, email).

    Only keys present in ``fields`` are written; omitted ones keep their stored
    values. With ``merge_q_and_a`` the Q&A blob is merged key-by-key instead of
    replaced.
    """
    if not phone_no and not email:
        raise ValueError("upsert_client needs a phone number or an email")

    updates = {key: value for key, value in fields.items() if key in UPSERTABLE_FIELDS and value is not None}
    now = datetime.now(timezone.utc)

    if phone_no:
        client = get_client_by_phone(db, phone_no)
        updates["phone_no"] = phone_no
    else:
        client = get_client_by_email(db, email)
        updates["email"] = email

    if client is None:
        client = Client(created_at=now, updated_at=now, session_count=0, **updates)
        db.add(client)
        db.flush()
        logger.info(f"Created client {client.id}", extra={"context": {"fields": sorted(updates)}})
        return client

    if merge_q_and_a and isinstance(updates.get("q_and_a"), dict):
        updates["q_and_a"] = {**(client.q_and_a or {}), **updates["q_and_a"]}

    for key, value in updates.items():
        setattr(client, key, value)
    client.updated_at = now
    db.flush()
    logger.info(f"Updated client {client.id}", extra={"context": {"fields": sorted(updates)}})
    return client
