# talent_mapping/assessment/scorer.py
# Converts raw Likert answers into 0-100 category scores.
#
# Every function here is pure. The session recomputes all three instruments
# after each mutation, which stays cheap only while the bank is a few hundred
# questions (each pass is O(total questions)).

import logging
import math
from typing import Dict, Mapping

from talent_mapping.assessment.models import (
    CategoryDefinition,
    InstrumentDefinition,
    Progress,
    QuestionBank,
    QuestionKey,
)
from talent_mapping.constants import Instrument

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Nearest integer, halves rounded up (2.5 -> 3), unlike the built-in round()."""
    return int(math.floor(value + 0.5))


def reverse_value(value: int, scale_min: int, scale_max: int) -> int:
    """Mirror a value across the scale, e.g. 1 <-> 5 on a 1-5 scale."""
    return scale_max + scale_min - value


def rescale(mean: float, scale_min: int, scale_max: int) -> float:
    """Map a mean on [scale_min, scale_max] onto [0, 100]."""
    return (mean - scale_min) / (scale_max - scale_min) * 100


def score_category(
    instrument: InstrumentDefinition,
    category: CategoryDefinition,
    answers: Mapping[QuestionKey, int],
) -> int:
    """
    Mean of the answered (reverse items inverted) values, rescaled to 0-100.
    A category with nothing answered scores 0.
    """
    scale_min, scale_max = instrument.scale_min, instrument.scale_max
    total = 0
    answered = 0

    for key in instrument.category_slots(category):
        value = answers.get(key)
        if value is None:
            continue
        total += reverse_value(value, scale_min, scale_max) if key.is_reverse else value
        answered += 1

    if answered == 0:
        return 0

    score = round_half_up(rescale(total / answered, scale_min, scale_max))
    return max(0, min(100, score))


def score_instrument(
    instrument: InstrumentDefinition,
    answers: Mapping[QuestionKey, int],
) -> Dict[str, int]:
    """Category key -> score for one instrument."""
    return {
        category.key: score_category(instrument, category, answers)
        for category in instrument.categories
    }


def score_all(bank: QuestionBank, answers: Mapping[QuestionKey, int]) -> Dict[Instrument, Dict[str, int]]:
    scores = {definition.id: score_instrument(definition, answers) for definition in bank.instruments}
    logger.debug(f"Recomputed category scores for {len(scores)} instruments")
    return scores


def count_answered(instrument: InstrumentDefinition, answers: Mapping[QuestionKey, int]) -> int:
    return sum(1 for key in instrument.slots() if answers.get(key) is not None)


def instrument_progress(instrument: InstrumentDefinition, answers: Mapping[QuestionKey, int]) -> Progress:
    return make_progress(count_answered(instrument, answers), instrument.total_questions)


def make_progress(answered: int, total: int) -> Progress:
    percentage = round_half_up(answered / total * 100) if total > 0 else 0
    return Progress(answered=answered, total=total, percentage=percentage)


def is_instrument_complete(instrument: InstrumentDefinition, answers: Mapping[QuestionKey, int]) -> bool:
    total = instrument.total_questions
    return total > 0 and count_answered(instrument, answers) == total
