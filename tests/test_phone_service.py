import pytest

from app.services.phone_service import normalize_phone


class TestNormalizePhone:
    def test_strips_formatting_from_international_number(self):
        assert normalize_phone("+91 98765-43210") == "919876543210"

    def test_replaces_trunk_zero_with_country_code(self):
        assert normalize_phone("098765432", country_code="91") == "9198765432"

    def test_uses_configured_country_code_by_default(self, monkeypatch):
        monkeypatch.setattr("app.services.phone_service.settings.country_calling_code", "44")
        assert normalize_phone("07700 900123") == "447700900123"

    def test_only_first_zero_is_replaced(self):
        assert normalize_phone("0 (80) 4000-0000", country_code="91") == "918040000000"

    def test_whatsapp_prefix_is_dropped(self):
        assert normalize_phone("whatsapp:+919876543210") == "919876543210"

    @pytest.mark.parametrize("raw", ["12", "abc123", "+1"])
    def test_short_or_odd_numbers_pass_through_as_digits(self, raw):
        assert normalize_phone(raw) == "".join(ch for ch in raw if ch.isdigit())

    @pytest.mark.parametrize("raw", [None, "", "   ", "no digits"])
    def test_never_raises_on_empty_input(self, raw):
        assert normalize_phone(raw) == ""

    def test_accepts_integers(self):
        assert normalize_phone(919876543210) == "919876543210"
