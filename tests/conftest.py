import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.main import app
from app.models import Professional
from app.services.context_service import ContextSet
from app.services.dialogue_service import DialogueTurn
from app.services.intent_service import resolve_intent
from app.services.result import Result
from app.services.whatsapp_service import get_whatsapp_service

SESSION = "projects/sereneminds/agent/sessions/abc123"


class FakeWhatsApp:
    """Records template sends instead of calling the gateway."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls = []

    async def send_template(
        self, destination, campaign_name, template_params, user_name=None, media=None, buttons=None
    ):
        self.calls.append(
            {
                "destination": destination,
                "campaign": campaign_name,
                "params": list(template_params),
                "user_name": user_name,
                "media": media,
                "buttons": buttons,
            }
        )
        if self.fail:
            return Result.failure("gateway down", "gateway_error")
        return Result.success({"status": "queued"})

    @property
    def campaigns(self):
        return [call["campaign"] for call in self.calls]


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    session = sessionmaker(bind=db_engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def whatsapp():
    return FakeWhatsApp()


@pytest.fixture
def add_professional(db_session):
    def _add(full_name, area_of_expertise, **kwargs):
        professional = Professional(full_name=full_name, area_of_expertise=area_of_expertise, **kwargs)
        db_session.add(professional)
        db_session.commit()
        return professional

    return _add


@pytest.fixture
def make_turn(db_session, whatsapp):
    def _make(intent_name, parameters=None, contexts=None, caller_phone="919876543210", query_text=""):
        return DialogueTurn(
            intent=resolve_intent(intent_name),
            db=db_session,
            whatsapp=whatsapp,
            contexts=ContextSet(SESSION, contexts or []),
            query_text=query_text,
            parameters=parameters or {},
            caller_phone=caller_phone,
        )

    return _make


@pytest.fixture
def client(db_session, whatsapp):
    app.dependency_overrides[get_db] = lambda: db_session
    app.dependency_overrides[get_whatsapp_service] = lambda: whatsapp
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        app.state.otp_store.clear()


def _dialogflow_request(intent_name, parameters=None, contexts=None, phone="+91 98765-43210", query_text="hi"):
    body = {
        "responseId": "resp-1",
        "session": SESSION,
        "queryResult": {
            "queryText": query_text,
            "parameters": parameters or {},
            "intent": {"displayName": intent_name} if intent_name is not None else {},
            "outputContexts": contexts or [],
        },
        "originalDetectIntentRequest": {"source": "whatsapp", "payload": {}},
    }
    if phone is not None:
        body["originalDetectIntentRequest"]["payload"]["phone"] = phone
    return body


@pytest.fixture
def dialogflow_request():
    return _dialogflow_request
