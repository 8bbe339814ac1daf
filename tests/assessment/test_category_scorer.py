# tests/assessment/test_category_scorer.py
import pytest

from talent_mapping.assessment.models import Progress, QuestionKey
from talent_mapping.assessment.scorer import (
    count_answered,
    instrument_progress,
    is_instrument_complete,
    make_progress,
    rescale,
    reverse_value,
    round_half_up,
    score_all,
    score_category,
    score_instrument,
)
from talent_mapping.constants import Instrument


def k(raw: str) -> QuestionKey:
    return QuestionKey.parse(raw)


# --- Helpers ---

@pytest.mark.parametrize("value, expected", [
    (0.5, 1), (1.5, 2), (2.5, 3), (62.5, 63), (62.4999, 62), (99.5, 100), (0.0, 0),
])
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected


@pytest.mark.parametrize("value, scale, expected", [
    (1, (1, 5), 5), (2, (1, 5), 4), (3, (1, 5), 3), (5, (1, 5), 1),
    (1, (1, 7), 7), (6, (1, 7), 2),
])
def test_reverse_value(value, scale, expected):
    assert reverse_value(value, *scale) == expected


def test_rescale_endpoints():
    assert rescale(1, 1, 5) == 0
    assert rescale(5, 1, 5) == 100
    assert rescale(4, 1, 7) == 50


# --- Category scores ---

def test_category_with_no_answers_scores_zero(small_bank):
    via = small_bank.get(Instrument.VIA)
    assert score_category(via, via.category("creativity"), {}) == 0


def test_all_categories_zero_without_answers(small_bank):
    scores = score_all(small_bank, {})
    assert set(scores) == {Instrument.VIA, Instrument.RIASEC, Instrument.BIG_FIVE}
    for per_category in scores.values():
        assert all(score == 0 for score in per_category.values())


def test_mean_uses_answered_count_only(small_bank):
    riasec = small_bank.get(Instrument.RIASEC)
    answers = {k("riasec_realistic_0"): 5}
    assert score_category(riasec, riasec.category("realistic"), answers) == 100


def test_extremes_map_to_0_and_100(small_bank):
    riasec = small_bank.get(Instrument.RIASEC)
    low = {k("riasec_realistic_0"): 1, k("riasec_realistic_1"): 1}
    high = {k("riasec_realistic_0"): 5, k("riasec_realistic_1"): 5}
    assert score_category(riasec, riasec.category("realistic"), low) == 0
    assert score_category(riasec, riasec.category("realistic"), high) == 100


def test_rounds_half_up(small_bank):
    riasec = small_bank.get(Instrument.RIASEC)
    answers = {k("riasec_realistic_0"): 3, k("riasec_realistic_1"): 4}
    # mean 3.5 -> 62.5
    assert score_category(riasec, riasec.category("realistic"), answers) == 63


@pytest.mark.parametrize("value", [1, 2, 3, 4, 5])
def test_reverse_item_contributes_six_minus_value(small_bank, value):
    big_five = small_bank.get(Instrument.BIG_FIVE)
    openness = big_five.category("openness")
    answers = {k("bigFive_openness_0"): 3, k("bigFive_openness_reverse_0"): value}
    expected_mean = (3 + (6 - value)) / 2
    expected = round_half_up((expected_mean - 1) / 4 * 100)
    assert score_category(big_five, openness, answers) == expected


def test_reverse_one_scores_like_regular_five(small_bank):
    big_five = small_bank.get(Instrument.BIG_FIVE)
    openness = big_five.category("openness")
    reverse_only = score_category(big_five, openness, {k("bigFive_openness_reverse_0"): 1})
    regular_only = score_category(big_five, openness, {k("bigFive_openness_0"): 5})
    assert reverse_only == regular_only == 100


def test_mixed_regular_and_reverse(small_bank):
    big_five = small_bank.get(Instrument.BIG_FIVE)
    answers = {
        k("bigFive_openness_0"): 5,
        k("bigFive_openness_1"): 4,
        k("bigFive_openness_reverse_0"): 2,
    }
    # (5 + 4 + 4) / 3 = 4.333 -> 83.3
    assert score_instrument(big_five, answers)["openness"] == 83


def test_seven_point_reverse_item(bank):
    big_five = bank.get(Instrument.BIG_FIVE)
    answers = {k("bigFive_openness_reverse_0"): 7}
    assert score_category(big_five, big_five.category("openness"), answers) == 0


def test_answers_for_other_instruments_are_ignored(small_bank):
    via = small_bank.get(Instrument.VIA)
    answers = {k("riasec_realistic_0"): 5}
    assert score_instrument(via, answers) == {"creativity": 0, "kindness": 0}


def test_scoring_is_pure(small_bank):
    answers = {k("via_creativity_0"): 4, k("via_kindness_0"): 2}
    snapshot = dict(answers)
    first = score_all(small_bank, answers)
    second = score_all(small_bank, answers)
    assert first == second
    assert answers == snapshot


def test_scores_stay_in_range_for_every_value(small_bank):
    big_five = small_bank.get(Instrument.BIG_FIVE)
    for value in range(1, 6):
        answers = {key: value for key in big_five.slots()}
        for score in score_instrument(big_five, answers).values():
            assert 0 <= score <= 100


# --- Progress ---

@pytest.mark.parametrize("answered, total, expected", [
    (0, 3, 0), (1, 3, 33), (2, 3, 67), (3, 3, 100), (0, 0, 0),
])
def test_make_progress(answered, total, expected):
    assert make_progress(answered, total) == Progress(answered, total, expected)


def test_instrument_progress_counts_reverse_slots(small_bank):
    big_five = small_bank.get(Instrument.BIG_FIVE)
    answers = {k("bigFive_openness_reverse_0"): 2, k("bigFive_neuroticism_reverse_0"): 4}
    assert count_answered(big_five, answers) == 2
    assert instrument_progress(big_five, answers) == Progress(2, 5, 40)


def test_instrument_complete_requires_every_slot(small_bank):
    via = small_bank.get(Instrument.VIA)
    answers = {key: 3 for key in via.slots()}
    assert is_instrument_complete(via, answers)
    del answers[k("via_kindness_0")]
    assert not is_instrument_complete(via, answers)
