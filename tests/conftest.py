import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.services.storage import MemoryStorage
from app.services.survey_store import SurveyStore, get_store


def make_responses(tag: str = "") -> dict:
    return {
        "exhibition_name": f"Impressionist Masterpieces {tag}".strip(),
        "first_impression": "Bright hall, quiet crowd, warm lighting everywhere",
        "memorable_work": "The water lilies room at the end of the east wing",
        "emotional_response": "Calm at first, then a little melancholy",
        "overall_experience": "Worth the trip, the audio guide was too short",
    }


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def store(storage):
    return SurveyStore(storage)


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
