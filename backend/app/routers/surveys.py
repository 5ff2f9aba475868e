# app/routers/surveys.py
from fastapi import APIRouter, Depends

from app.core.config import settings
from app.schemas.survey import SurveyCollection, SurveyCreatedOut, SurveyIn
from app.services.survey_store import SurveyStore, get_store

router = APIRouter(prefix=f"{settings.api_prefix}/surveys", tags=["surveys"])


# ---------- Routes ----------

@router.get("", response_model=SurveyCollection)
def list_surveys(store: SurveyStore = Depends(get_store)):
    """Return every response collected so far, oldest first, with the running total."""
    store.initialize()
    return store.list()


@router.post("", response_model=SurveyCreatedOut, status_code=201)
def create_survey(payload: SurveyIn, store: SurveyStore = Depends(get_store)):
    """
    Store one completed questionnaire.
    Answer length is checked by the form only; any five strings are accepted here.
    """
    store.initialize()
    survey_id = store.append(payload.responses)
    return SurveyCreatedOut(success=True, id=survey_id)
