from unittest.mock import patch

from app.models import Client
from app.schemas.tally import TallyField
from app.services.tally_service import transform_submission


def _options(*ids):
    return [{"id": option_id, "text": option_id.title()} for option_id in ids]


def _submission_fields(email="  Asha@Example.COM "):
    return [
        {"key": "question_Ed5L82", "type": "INPUT_TEXT", "label": "Email", "value": email},
        {
            "key": "question_RMd0Bv",
            "type": "MULTIPLE_CHOICE",
            "label": "Gender",
            "value": ["f"],
            "options": _options("m", "f", "x"),
        },
        {"key": "question_oeDyV5", "type": "INPUT_TEXT", "label": "Occupation", "value": "Software Engineer"},
        {
            "key": "question_ZEoNRA",
            "type": "CHECKBOXES",
            "label": "What brings you here?",
            "value": ["sleep", "stress"],
            "options": _options("anxiety", "sleep", "stress"),
        },
        {"key": "question_unmapped", "type": "INPUT_TEXT", "value": "ignored"},
    ]


class TestTransformSubmission:
    def test_maps_known_questions(self):
        fields = [TallyField.model_validate(field) for field in _submission_fields()]

        form_data, email = transform_submission(fields)

        assert email == "asha@example.com"
        assert form_data["gender"] == "1"
        assert form_data["occupation"] == "software-engineer"
        assert form_data["q10"] == ["1", "2"]
        assert (form_data["q10_0"], form_data["q10_1"], form_data["q10_2"]) == (False, True, True)
        assert "question_unmapped" not in form_data

    def test_unselected_choice_defaults_to_zero(self):
        field = TallyField(key="question_O4lzBk", type="MULTIPLE_CHOICE", value=None, options=_options("a", "b"))

        form_data, _ = transform_submission([field])

        assert form_data["q1"] == "0"

    def test_choice_without_options_keeps_raw_value(self):
        field = TallyField(key="question_VQj01N", type="MULTIPLE_CHOICE", value=["Often"])

        form_data, _ = transform_submission([field])

        assert form_data["q2"] == "Often"

    def test_missing_email(self):
        _, email = transform_submission([])
        assert email == ""


class TestTallyEndpoint:
    def test_creates_client_from_submission(self, client, db_session):
        response = client.post("/api/clients/tally", json={"eventId": "evt-1", "data": {"fields": _submission_fields()}})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["client"]["email"] == "asha@example.com"
        assert body["transformedData"]["gender"] == "1"
        stored = db_session.query(Client).one()
        assert stored.q_and_a["q10"] == ["1", "2"]

    def test_resubmission_updates_same_client(self, client, db_session):
        client.post("/api/clients/tally", json={"data": {"fields": _submission_fields()}})
        client.post("/api/clients/tally", json={"data": {"fields": _submission_fields("asha@example.com")}})

        assert db_session.query(Client).count() == 1

    def test_rejects_submission_without_email(self, client, db_session):
        response = client.post("/api/clients/tally", json={"data": {"fields": _submission_fields(email="")}})

        assert response.status_code == 400
        assert response.json() == {"success": False, "message": "Email is required"}
        assert db_session.query(Client).count() == 0

    def test_storage_failure_returns_500(self, client):
        with patch("app.routers.clients.upsert_client", side_effect=RuntimeError("db down")):
            response = client.post("/api/clients/tally", json={"data": {"fields": _submission_fields()}})

        assert response.status_code == 500
        assert response.json()["success"] is False
