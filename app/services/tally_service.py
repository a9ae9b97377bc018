import re
from typing import Any

from app.schemas.tally import TallyField

# Tally question keys -> stored Q&A field names
FIELD_MAPPINGS = {
    "question_Ed5L82": "email",
    "question_RMd0Bv": "gender",
    "question_leqylV": "age-group",
    "question_oeDyV5": "occupation",
    "question_G9KzBQ": "marital-status",
    "question_O4lzBk": "q1",
    "question_VQj01N": "q2",
    "question_P1D6BP": "q3",
    "question_Ed5XbA": "q4",
    "question_raB6rp": "q5",
    "question_4JB8Nd": "q6",
    "question_j6by9Y": "q7",
    "question_2aBexg": "q8",
    "question_xMjpNE": "q9",
    "question_ZEoNRA": "q10",
    "question_NlD6BN": "q11",
    "question_qDadE8": "q12",
    "question_QeMDBl": "q13",
}

SLUGGED_FIELDS = ("gender", "age-group", "occupation", "marital-status")
FLAGGED_CHECKBOX_FIELDS = ("q10",)


def _slug(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    return re.sub(r"\s+", "-", value.lower())


def _map_choice(field: TallyField, mapped_key: str, form_data: dict[str, Any]) -> None:
    if not field.options:
        form_data[mapped_key] = field.value[0] if isinstance(field.value, list) and field.value else field.value
        return

    selected = field.value if isinstance(field.value, list) else [field.value]
    indices = [str(index) for index, option in enumerate(field.options) if option.id in selected]

    if field.type == "MULTIPLE_CHOICE":
        form_data[mapped_key] = indices[0] if indices else "0"
        return

    form_data[mapped_key] = indices
    if mapped_key in FLAGGED_CHECKBOX_FIELDS:
        for index, option in enumerate(field.options):
            form_data[f"{mapped_key}_{index}"] = option.id in selected


def transform_submission(fields: list[TallyField]) -> tuple[dict[str, Any], str]:
    """Map raw Tally fields to the stored Q&A blob. Returns (form_data, email)."""
    form_data: dict[str, Any] = {}
    email = ""

    for field in fields:
        mapped_key = FIELD_MAPPINGS.get(field.key)
        if not mapped_key:
            continue

        if field.type == "INPUT_TEXT":
            form_data[mapped_key] = field.value
            if mapped_key == "email" and isinstance(field.value, str):
                email = field.value.lower().strip()
        elif field.type in ("MULTIPLE_CHOICE", "CHECKBOXES"):
            _map_choice(field, mapped_key, form_data)

    for key in SLUGGED_FIELDS:
        if form_data.get(key):
            form_data[key] = _slug(form_data[key])

    return form_data, email
