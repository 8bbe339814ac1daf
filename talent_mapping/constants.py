# talent_mapping/constants.py
from enum import Enum


class Instrument(str, Enum):
    """The three psychometric instruments, in the order they are administered."""
    VIA = "via"
    RIASEC = "riasec"
    BIG_FIVE = "bigFive"

    @classmethod
    def ordered(cls) -> list:
        return [cls.VIA, cls.RIASEC, cls.BIG_FIVE]


# Fixed literal expected by the scoring backend
ASSESSMENT_NAME = "AI-Driven Talent Mapping"

# Storage keys for the persisted session snapshot
ANSWERS_STORAGE_KEY = "assessmentAnswers"
FLAGS_STORAGE_KEY = "assessmentFlaggedQuestions"

RIASEC_FIELDS = [
    "realistic", "investigative", "artistic",
    "social", "enterprising", "conventional",
]

OCEAN_FIELDS = [
    "openness", "conscientiousness", "extraversion",
    "agreeableness", "neuroticism",
]

VIA_STRENGTH_FIELDS = [
    "creativity", "curiosity", "judgment", "loveOfLearning", "perspective",
    "bravery", "perseverance", "honesty", "zest",
    "love", "kindness", "socialIntelligence",
    "teamwork", "fairness", "leadership",
    "forgiveness", "humility", "prudence", "selfRegulation",
    "appreciationOfBeauty", "gratitude", "hope", "humor", "spirituality",
]

# The six VIA virtues and the strengths each one groups
VIA_VIRTUES = {
    "wisdomAndKnowledge": ["creativity", "curiosity", "judgment", "loveOfLearning", "perspective"],
    "courage": ["bravery", "perseverance", "honesty", "zest"],
    "humanity": ["love", "kindness", "socialIntelligence"],
    "justice": ["teamwork", "fairness", "leadership"],
    "temperance": ["forgiveness", "humility", "prudence", "selfRegulation"],
    "transcendence": ["appreciationOfBeauty", "gratitude", "hope", "humor", "spirituality"],
}

NEUTRAL_SCORE = 50
