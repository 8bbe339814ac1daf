# talent_mapping/submission/transformer.py
# Maps internal category scores onto the scoring backend's wire schema.

import logging
import math
import random
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Tuple, Union

from pydantic import BaseModel

from talent_mapping.assessment.scorer import round_half_up
from talent_mapping.constants import (
    ASSESSMENT_NAME,
    NEUTRAL_SCORE,
    OCEAN_FIELDS,
    RIASEC_FIELDS,
    VIA_STRENGTH_FIELDS,
    VIA_VIRTUES,
    Instrument,
)
from talent_mapping.errors import AssessmentConfigurationError, ScoreValidationError
from talent_mapping.submission.schemas import SubmissionPayload, ValidationResult

logger = logging.getLogger(__name__)


class StrengthWeight(NamedTuple):
    weight: float
    base_variation: float


# Virtue -> strengths it expands into. A weight of w pulls the strength
# w of the way from neutral (50) towards the virtue score.
VIA_STRENGTH_WEIGHTS: Dict[str, Dict[str, StrengthWeight]] = {
    "wisdomAndKnowledge": {
        "creativity": StrengthWeight(0.25, 5),
        "curiosity": StrengthWeight(0.25, 3),
        "judgment": StrengthWeight(0.2, 4),
        "loveOfLearning": StrengthWeight(0.2, 6),
        "perspective": StrengthWeight(0.1, 2),
    },
    "courage": {
        "bravery": StrengthWeight(0.3, 4),
        "perseverance": StrengthWeight(0.3, 5),
        "honesty": StrengthWeight(0.25, 3),
        "zest": StrengthWeight(0.15, 6),
    },
    "humanity": {
        "love": StrengthWeight(0.35, 4),
        "kindness": StrengthWeight(0.35, 3),
        "socialIntelligence": StrengthWeight(0.3, 5),
    },
    "justice": {
        "teamwork": StrengthWeight(0.4, 4),
        "fairness": StrengthWeight(0.35, 3),
        "leadership": StrengthWeight(0.25, 6),
    },
    "temperance": {
        "forgiveness": StrengthWeight(0.25, 4),
        "humility": StrengthWeight(0.25, 3),
        "prudence": StrengthWeight(0.25, 5),
        "selfRegulation": StrengthWeight(0.25, 4),
    },
    "transcendence": {
        "appreciationOfBeauty": StrengthWeight(0.2, 6),
        "gratitude": StrengthWeight(0.2, 4),
        "hope": StrengthWeight(0.2, 5),
        "humor": StrengthWeight(0.2, 7),
        "spirituality": StrengthWeight(0.2, 8),
    },
}


class IndustryProfile(NamedTuple):
    riasec: Dict[str, float]
    via: Dict[str, float]
    ocean: Dict[str, float]
    inverted: Tuple[str, ...] = ()


INDUSTRY_PROFILES: Dict[str, IndustryProfile] = {
    "teknologi": IndustryProfile(
        riasec={"investigative": 0.5, "realistic": 0.3, "conventional": 0.2},
        via={"loveOfLearning": 0.3, "curiosity": 0.3, "perseverance": 0.2, "creativity": 0.2},
        ocean={"openness": 0.6, "conscientiousness": 0.4},
    ),
    "kesehatan": IndustryProfile(
        riasec={"investigative": 0.5, "social": 0.5},
        via={"kindness": 0.4, "judgment": 0.3, "zest": 0.2, "loveOfLearning": 0.1},
        ocean={"conscientiousness": 0.6, "agreeableness": 0.4},
    ),
    "keuangan": IndustryProfile(
        riasec={"conventional": 0.6, "enterprising": 0.4},
        via={"prudence": 0.4, "judgment": 0.3, "fairness": 0.2, "leadership": 0.1},
        ocean={"conscientiousness": 0.7, "neuroticism": 0.3},
        inverted=("neuroticism",),
    ),
    "pendidikan": IndustryProfile(
        riasec={"social": 0.6, "artistic": 0.4},
        via={"loveOfLearning": 0.3, "socialIntelligence": 0.3, "leadership": 0.2, "creativity": 0.2},
        ocean={"extraversion": 0.5, "agreeableness": 0.5},
    ),
    "rekayasa": IndustryProfile(
        riasec={"realistic": 0.6, "investigative": 0.4},
        via={"perseverance": 0.3, "teamwork": 0.3, "prudence": 0.2, "creativity": 0.2},
        ocean={"conscientiousness": 0.8, "neuroticism": 0.2},
        inverted=("neuroticism",),
    ),
    "pemasaran": IndustryProfile(
        riasec={"enterprising": 0.5, "artistic": 0.5},
        via={"creativity": 0.4, "socialIntelligence": 0.3, "zest": 0.2, "perspective": 0.1},
        ocean={"extraversion": 0.6, "openness": 0.4},
    ),
    "hukum": IndustryProfile(
        riasec={"investigative": 0.5, "enterprising": 0.5},
        via={"judgment": 0.4, "fairness": 0.3, "perseverance": 0.3},
        ocean={"conscientiousness": 0.7, "neuroticism": 0.3},
        inverted=("neuroticism",),
    ),
    "kreatif": IndustryProfile(
        riasec={"artistic": 0.7, "realistic": 0.3},
        via={"creativity": 0.5, "appreciationOfBeauty": 0.3, "bravery": 0.1, "zest": 0.1},
        ocean={"openness": 0.8, "conscientiousness": 0.2},
        inverted=("conscientiousness",),
    ),
    "media": IndustryProfile(
        riasec={"artistic": 0.4, "social": 0.3, "enterprising": 0.3},
        via={"creativity": 0.4, "socialIntelligence": 0.3, "curiosity": 0.3},
        ocean={"extraversion": 0.5, "openness": 0.5},
    ),
    "penjualan": IndustryProfile(
        riasec={"enterprising": 0.7, "social": 0.3},
        via={"zest": 0.3, "socialIntelligence": 0.3, "perseverance": 0.2, "hope": 0.2},
        ocean={"extraversion": 0.7, "conscientiousness": 0.3},
    ),
    "sains": IndustryProfile(
        riasec={"investigative": 1.0},
        via={"curiosity": 0.4, "loveOfLearning": 0.3, "perseverance": 0.2, "hope": 0.1},
        ocean={"openness": 0.6, "conscientiousness": 0.4},
    ),
    "manufaktur": IndustryProfile(
        riasec={"realistic": 0.7, "conventional": 0.3},
        via={"teamwork": 0.4, "perseverance": 0.3, "prudence": 0.3},
        ocean={"conscientiousness": 1.0},
    ),
    "agrikultur": IndustryProfile(
        riasec={"realistic": 1.0},
        via={"perseverance": 0.5, "love": 0.3, "gratitude": 0.2},
        ocean={"conscientiousness": 0.7, "neuroticism": 0.3},
        inverted=("neuroticism",),
    ),
    "pemerintahan": IndustryProfile(
        riasec={"conventional": 0.5, "social": 0.5},
        via={"fairness": 0.4, "teamwork": 0.3, "prudence": 0.2, "leadership": 0.1},
        ocean={"conscientiousness": 0.6, "agreeableness": 0.4},
    ),
    "konsultasi": IndustryProfile(
        riasec={"enterprising": 0.5, "investigative": 0.5},
        via={"judgment": 0.3, "perspective": 0.3, "socialIntelligence": 0.2, "leadership": 0.2},
        ocean={"extraversion": 0.4, "conscientiousness": 0.3, "openness": 0.3},
    ),
    "pariwisata": IndustryProfile(
        riasec={"social": 0.5, "enterprising": 0.3, "realistic": 0.2},
        via={"socialIntelligence": 0.4, "kindness": 0.3, "zest": 0.2, "teamwork": 0.1},
        ocean={"extraversion": 0.6, "agreeableness": 0.4},
    ),
    "logistik": IndustryProfile(
        riasec={"conventional": 0.5, "realistic": 0.5},
        via={"prudence": 0.5, "teamwork": 0.3, "perseverance": 0.2},
        ocean={"conscientiousness": 1.0},
    ),
    "energi": IndustryProfile(
        riasec={"realistic": 0.6, "investigative": 0.4},
        via={"prudence": 0.4, "teamwork": 0.3, "judgment": 0.3},
        ocean={"conscientiousness": 0.8, "neuroticism": 0.2},
        inverted=("neuroticism",),
    ),
    "sosial": IndustryProfile(
        riasec={"social": 0.7, "enterprising": 0.3},
        via={"kindness": 0.4, "fairness": 0.3, "hope": 0.2, "leadership": 0.1},
        ocean={"agreeableness": 0.6, "extraversion": 0.4},
    ),
    "olahraga": IndustryProfile(
        riasec={"realistic": 0.4, "social": 0.3, "enterprising": 0.3},
        via={"zest": 0.4, "perseverance": 0.3, "teamwork": 0.2, "leadership": 0.1},
        ocean={"extraversion": 0.6, "conscientiousness": 0.4},
    ),
    "properti": IndustryProfile(
        riasec={"enterprising": 1.0},
        via={"socialIntelligence": 0.4, "zest": 0.3, "perseverance": 0.3},
        ocean={"extraversion": 0.7, "conscientiousness": 0.3},
    ),
    "kuliner": IndustryProfile(
        riasec={"artistic": 0.4, "realistic": 0.3, "enterprising": 0.3},
        via={"creativity": 0.4, "zest": 0.3, "kindness": 0.2, "teamwork": 0.1},
        ocean={"extraversion": 0.5, "agreeableness": 0.5},
    ),
    "perdagangan": IndustryProfile(
        riasec={"enterprising": 0.4, "conventional": 0.3, "social": 0.3},
        via={"socialIntelligence": 0.4, "zest": 0.3, "prudence": 0.2, "fairness": 0.1},
        ocean={"extraversion": 0.6, "conscientiousness": 0.4},
    ),
    "telekomunikasi": IndustryProfile(
        riasec={"realistic": 0.4, "investigative": 0.3, "enterprising": 0.3},
        via={"teamwork": 0.4, "perseverance": 0.3, "curiosity": 0.2, "judgment": 0.1},
        ocean={"conscientiousness": 0.5, "openness": 0.5},
    ),
}

# Wire block -> (label used in error messages, expected fields)
_WIRE_BLOCKS = {
    "riasec": ("RIASEC", RIASEC_FIELDS),
    "ocean": ("OCEAN", OCEAN_FIELDS),
    "viaIs": ("VIA-IS", VIA_STRENGTH_FIELDS),
}


def clamp_score(value: float) -> int:
    return max(0, min(100, round_half_up(value)))


def aggregate_virtue_scores(via_scores: Mapping[str, float]) -> Dict[str, float]:
    """
    Collapses per-strength VIA scores into the six virtue scores.

    A virtue score given directly is used as is; otherwise it is the mean of
    whichever of its strengths are present, or neutral (50) when none are.
    """
    virtues: Dict[str, float] = {}
    for virtue, strengths in VIA_VIRTUES.items():
        if via_scores.get(virtue) is not None:
            virtues[virtue] = float(via_scores[virtue])
            continue
        present = [float(via_scores[s]) for s in strengths if via_scores.get(s) is not None]
        virtues[virtue] = sum(present) / len(present) if present else float(NEUTRAL_SCORE)
    return virtues


def strength_jitter(strength: str, virtue_score: float, base_variation: float,
                    rng: Optional[random.Random] = None) -> float:
    """
    Bounded perturbation in [-base_variation, +base_variation].

    Without an explicit ``rng`` the value is seeded from the strength name and
    virtue score, so identical answers always produce an identical payload.
    """
    source = rng if rng is not None else random.Random(f"{strength}:{virtue_score!r}")
    return source.uniform(-base_variation, base_variation)


def decompose_virtues(virtue_scores: Mapping[str, float],
                      rng: Optional[random.Random] = None) -> Dict[str, int]:
    """Expands six virtue scores into the 24 character strength scores."""
    strengths = {name: NEUTRAL_SCORE for name in VIA_STRENGTH_FIELDS}
    for virtue, members in VIA_STRENGTH_WEIGHTS.items():
        virtue_score = virtue_scores.get(virtue)
        if virtue_score is None:
            virtue_score = float(NEUTRAL_SCORE)
        for strength, config in members.items():
            base = virtue_score * config.weight + NEUTRAL_SCORE * (1 - config.weight)
            variation = strength_jitter(strength, virtue_score, config.base_variation, rng)
            strengths[strength] = clamp_score(base + variation)
    return strengths


def _block_scores(scores: Mapping[str, float], fields: List[str]) -> Dict[str, Any]:
    # Range problems are left for validate() to report with their paths
    block: Dict[str, Any] = {}
    for field in fields:
        value = scores.get(field)
        if value is None:
            value = 0
        elif isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value):
            value = round_half_up(value)
        block[field] = value
    return block


def transform(scores_by_instrument: Mapping[Any, Mapping[str, float]],
              rng: Optional[random.Random] = None) -> SubmissionPayload:
    """
    Builds the submission payload from per-instrument category scores.

    Args:
        scores_by_instrument: Instrument (or its string id) -> category key -> 0-100 score.
        rng: Optional random source for the VIA jitter. Deterministic when omitted.

    Returns:
        A validated SubmissionPayload.

    Raises:
        AssessmentConfigurationError: If any of the three instruments is missing or empty.
        ScoreValidationError: If a score is out of range or not a number.
    """
    via = scores_by_instrument.get(Instrument.VIA)
    riasec = scores_by_instrument.get(Instrument.RIASEC)
    big_five = scores_by_instrument.get(Instrument.BIG_FIVE)
    if not via or not riasec or not big_five:
        missing = [i.value for i, s in ((Instrument.VIA, via), (Instrument.RIASEC, riasec),
                                        (Instrument.BIG_FIVE, big_five)) if not s]
        logger.warning(f"Cannot transform scores, missing instruments: {missing}")
        raise AssessmentConfigurationError("All assessments must be completed", errors=missing)

    wire = {
        "assessmentName": ASSESSMENT_NAME,
        "riasec": _block_scores(riasec, RIASEC_FIELDS),
        "ocean": _block_scores(big_five, OCEAN_FIELDS),
        "viaIs": decompose_virtues(aggregate_virtue_scores(via), rng),
    }

    result = validate(wire)
    if not result.is_valid:
        logger.error(f"Transformed payload failed validation: {result.errors}")
        raise ScoreValidationError("Invalid assessment data", errors=result.errors)

    payload = SubmissionPayload.model_validate(wire)
    logger.debug("Transformed category scores into submission payload")
    return payload


def _score_problem(value: Any) -> Optional[str]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return "not a number"
    if isinstance(value, float) and not math.isfinite(value):
        return "not a finite number"
    if isinstance(value, float) and not value.is_integer():
        return "not an integer"
    if value < 0 or value > 100:
        return "outside 0-100"
    return None


def validate(payload: Union[SubmissionPayload, Mapping[str, Any]]) -> ValidationResult:
    """Checks a payload (model or wire dict) and reports every violation with its field path."""
    data = payload.to_wire() if isinstance(payload, BaseModel) else payload
    errors: List[str] = []

    name = data.get("assessmentName")
    if not name:
        errors.append("assessmentName: Assessment name is required")
    elif name != ASSESSMENT_NAME:
        errors.append(f"assessmentName: expected '{ASSESSMENT_NAME}', got {name!r}")

    for block_name, (label, fields) in _WIRE_BLOCKS.items():
        block = data.get(block_name)
        if not isinstance(block, Mapping):
            block = {}
        for field in fields:
            value = block.get(field)
            problem = _score_problem(value)
            if problem:
                errors.append(f"{block_name}.{field}: Invalid {label} {field} score: {value!r} ({problem})")

    return ValidationResult(is_valid=not errors, errors=errors)


def _weighted(scores: Mapping[str, float], weights: Mapping[str, float],
              inverted: Tuple[str, ...] = ()) -> float:
    total = 0.0
    for trait, weight in weights.items():
        value = scores.get(trait) or 0
        if trait in inverted:
            value = 100 - value
        total += value * weight
    return total


def calculate_industry_scores(payload: Union[SubmissionPayload, Mapping[str, Any]]) -> Dict[str, int]:
    """
    Fit score (0-100) for each of the 24 industries.

    Each industry blends weighted RIASEC, VIA and OCEAN traits; the blocks are
    averaged. Informational only, never sent with the submission.
    """
    data = payload.to_wire() if isinstance(payload, BaseModel) else payload
    riasec = data.get("riasec") or {}
    via = data.get("viaIs") or {}
    ocean = data.get("ocean") or {}

    industry_scores: Dict[str, int] = {}
    for industry, profile in INDUSTRY_PROFILES.items():
        blocks = []
        if profile.riasec:
            blocks.append(_weighted(riasec, profile.riasec))
        if profile.via:
            blocks.append(_weighted(via, profile.via))
        if profile.ocean:
            blocks.append(_weighted(ocean, profile.ocean, profile.inverted))
        final = sum(blocks) / len(blocks) if blocks else 0
        industry_scores[industry] = clamp_score(final)
    return industry_scores
