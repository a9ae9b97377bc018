from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.database import get_db
from app.logging_config import get_logger
from app.schemas.tally import TallyResponse, TallySubmission
from app.services.client_service import upsert_client
from app.services.tally_service import transform_submission

logger = get_logger("clients")

router = APIRouter(prefix="/api/clients")


@router.post("/tally", response_model=TallyResponse, response_model_exclude_none=True)
def handle_tally_submission(submission: TallySubmission, db: Session = Depends(get_db)):
    """Store a Tally intake form as the client's Q&A, keyed by email."""
    fields = submission.data.fields if submission.data else []
    form_data, email = transform_submission(fields)

    if not email:
        return JSONResponse(
            status_code=400,
            content=TallyResponse(success=False, message="Email is required").model_dump(exclude_none=True),
        )

    try:
        client = upsert_client(db, {"q_and_a": form_data}, email=email)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Tally submission failed: {e}", exc_info=True, extra={"context": {"email": email}})
        return JSONResponse(
            status_code=500,
            content=TallyResponse(success=False, message="Failed to process form submission").model_dump(
                exclude_none=True
            ),
        )

    return TallyResponse(success=True, client=client.to_dict(), transformedData=form_data)
