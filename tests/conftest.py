import pytest

from talent_mapping.assessment.loader import get_question_bank, load_question_bank_data
from talent_mapping.assessment.session import AssessmentSession
from talent_mapping.cache.backends import InMemoryStore
from talent_mapping.cache.secure_store import PersistenceStore

TEST_SECRET = "test-encryption-secret"

LIKERT_5 = [
    {"value": 1, "label": "Strongly disagree"},
    {"value": 2, "label": "Disagree"},
    {"value": 3, "label": "Neutral"},
    {"value": 4, "label": "Agree"},
    {"value": 5, "label": "Strongly agree"},
]


def _small_bank_data() -> dict:
    """A 1-5 scale bank with a handful of questions per instrument (11 in total)."""
    return {
        "version": "test",
        "instruments": [
            {
                "id": "via",
                "title": "VIA",
                "scale": LIKERT_5,
                "categories": [
                    {"key": "creativity", "name": "Creativity", "questions": ["v-c-0", "v-c-1"]},
                    {"key": "kindness", "name": "Kindness", "questions": ["v-k-0"]},
                ],
            },
            {
                "id": "riasec",
                "title": "RIASEC",
                "scale": LIKERT_5,
                "categories": [
                    {"key": "realistic", "name": "Realistic", "questions": ["r-r-0", "r-r-1"]},
                    {"key": "social", "name": "Social", "questions": ["r-s-0"]},
                ],
            },
            {
                "id": "bigFive",
                "title": "Big Five",
                "scale": LIKERT_5,
                "categories": [
                    {
                        "key": "openness",
                        "name": "Openness",
                        "questions": ["b-o-0", "b-o-1"],
                        "reverse_questions": ["b-o-r-0"],
                    },
                    {"key": "neuroticism", "name": "Neuroticism", "questions": ["b-n-0"],
                     "reverse_questions": ["b-n-r-0"]},
                ],
            },
        ],
    }


@pytest.fixture
def bank():
    return get_question_bank()


@pytest.fixture
def small_bank():
    return load_question_bank_data(_small_bank_data())


@pytest.fixture
def memory_backend():
    return InMemoryStore()


@pytest.fixture
def persistence_store(memory_backend):
    return PersistenceStore(memory_backend, TEST_SECRET)


@pytest.fixture
def session(small_bank, persistence_store):
    return AssessmentSession(small_bank, store=persistence_store)


@pytest.fixture
def full_session(bank, persistence_store):
    return AssessmentSession(bank, store=persistence_store)


@pytest.fixture
def small_bank_dict():
    """Fresh raw data for the small bank; tests may mutate it."""
    return _small_bank_data()
