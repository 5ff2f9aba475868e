# app/schemas/survey.py
from pydantic import BaseModel


class SurveyResponses(BaseModel):
    exhibition_name: str
    first_impression: str
    memorable_work: str
    emotional_response: str
    overall_experience: str


class SurveyIn(BaseModel):
    responses: SurveyResponses


class SurveyRecord(BaseModel):
    id: int
    responses: SurveyResponses
    timestamp: str  # ISO-8601 UTC, set by the store


class CollectionMetadata(BaseModel):
    total_responses: int
    created_at: str


class SurveyCollection(BaseModel):
    surveys: list[SurveyRecord]
    metadata: CollectionMetadata


class SurveyCreatedOut(BaseModel):
    success: bool = True
    id: int
