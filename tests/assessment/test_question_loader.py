# tests/assessment/test_question_loader.py
import copy

import pytest
import yaml

from talent_mapping.assessment.loader import (
    get_question_bank,
    load_question_bank_data,
    load_question_bank_from_file,
)
from talent_mapping.assessment.models import QuestionKey
from talent_mapping.constants import Instrument, OCEAN_FIELDS, RIASEC_FIELDS, VIA_STRENGTH_FIELDS
from talent_mapping.errors import QuestionBankError


# --- Bundled question bank ---

def test_bundled_bank_totals(bank):
    assert bank.total_questions == 200
    assert bank.get(Instrument.VIA).total_questions == 96
    assert bank.get(Instrument.RIASEC).total_questions == 60
    assert bank.get(Instrument.BIG_FIVE).total_questions == 44


def test_bundled_bank_administration_order(bank):
    assert [d.id for d in bank.instruments] == [Instrument.VIA, Instrument.RIASEC, Instrument.BIG_FIVE]


def test_bundled_bank_category_keys_match_wire_fields(bank):
    assert [c.key for c in bank.get(Instrument.VIA).categories] == VIA_STRENGTH_FIELDS
    assert [c.key for c in bank.get(Instrument.RIASEC).categories] == RIASEC_FIELDS
    assert [c.key for c in bank.get(Instrument.BIG_FIVE).categories] == OCEAN_FIELDS


def test_bundled_bank_uses_seven_point_scales(bank):
    for definition in bank.instruments:
        assert (definition.scale_min, definition.scale_max) == (1, 7)


def test_only_big_five_has_reverse_items(bank):
    def reverse_count(instrument):
        return sum(1 for key in bank.get(instrument).slots() if key.is_reverse)

    assert reverse_count(Instrument.VIA) == 0
    assert reverse_count(Instrument.RIASEC) == 0
    assert reverse_count(Instrument.BIG_FIVE) == 17


def test_question_text_lookup(bank):
    definition = bank.get(Instrument.BIG_FIVE)
    assert definition.question_text(QuestionKey.parse("bigFive_openness_reverse_0")) == \
        "Saya lebih menyukai rutinitas dalam pekerjaan."
    assert definition.question_text(QuestionKey.parse("bigFive_openness_reverse_2")) is None
    assert not bank.contains(QuestionKey.parse("via_creativity_4"))
    assert bank.contains(QuestionKey.parse("via_creativity_3"))


def test_get_question_bank_is_cached():
    assert get_question_bank() is get_question_bank()


# --- Validation ---

def test_load_valid_data_sorts_instruments(small_bank_dict):
    data = small_bank_dict
    data["instruments"].reverse()
    bank = load_question_bank_data(data)
    assert [d.id for d in bank.instruments] == Instrument.ordered()


def test_missing_instrument_rejected(small_bank_dict):
    data = small_bank_dict
    data["instruments"] = data["instruments"][:2]
    with pytest.raises(QuestionBankError, match="missing instruments"):
        load_question_bank_data(data)


def test_duplicate_instrument_rejected(small_bank_dict):
    data = small_bank_dict
    data["instruments"].append(copy.deepcopy(data["instruments"][0]))
    with pytest.raises(QuestionBankError, match="Duplicate instrument"):
        load_question_bank_data(data)


def test_unknown_instrument_rejected(small_bank_dict):
    data = small_bank_dict
    data["instruments"][0]["id"] = "mbti"
    with pytest.raises(QuestionBankError, match="schema"):
        load_question_bank_data(data)


def test_non_contiguous_scale_rejected(small_bank_dict):
    data = small_bank_dict
    data["instruments"][1]["scale"] = [{"value": 1, "label": "a"}, {"value": 3, "label": "b"}]
    with pytest.raises(QuestionBankError, match="contiguous"):
        load_question_bank_data(data)


def test_single_point_scale_rejected(small_bank_dict):
    data = small_bank_dict
    data["instruments"][1]["scale"] = [{"value": 1, "label": "only"}]
    with pytest.raises(QuestionBankError, match="two points"):
        load_question_bank_data(data)


def test_duplicate_category_rejected(small_bank_dict):
    data = small_bank_dict
    categories = data["instruments"][0]["categories"]
    categories.append(copy.deepcopy(categories[0]))
    with pytest.raises(QuestionBankError, match="Duplicate category"):
        load_question_bank_data(data)


def test_underscore_in_category_key_rejected(small_bank_dict):
    data = small_bank_dict
    data["instruments"][0]["categories"][0]["key"] = "love_of_learning"
    with pytest.raises(QuestionBankError, match="must not contain"):
        load_question_bank_data(data)


def test_empty_category_rejected(small_bank_dict):
    data = small_bank_dict
    data["instruments"][2]["categories"][0]["questions"] = []
    data["instruments"][2]["categories"][0]["reverse_questions"] = []
    with pytest.raises(QuestionBankError, match="has no questions"):
        load_question_bank_data(data)


def test_instrument_without_categories_rejected(small_bank_dict):
    data = small_bank_dict
    data["instruments"][1]["categories"] = []
    with pytest.raises(QuestionBankError, match="no categories"):
        load_question_bank_data(data)


# --- Files ---

def test_load_from_file(tmp_path, small_bank_dict):
    path = tmp_path / "bank.yml"
    path.write_text(yaml.safe_dump(small_bank_dict), encoding="utf-8")
    bank = load_question_bank_from_file(path)
    assert bank.version == "test"
    assert bank.total_questions == 11


def test_missing_file(tmp_path):
    with pytest.raises(QuestionBankError, match="File not found"):
        load_question_bank_from_file(tmp_path / "nope.yml")


def test_empty_file(tmp_path):
    path = tmp_path / "empty.yml"
    path.write_text("", encoding="utf-8")
    with pytest.raises(QuestionBankError, match="empty"):
        load_question_bank_from_file(path)


def test_invalid_yaml(tmp_path):
    path = tmp_path / "broken.yml"
    path.write_text("instruments: [\n  - id: via\n", encoding="utf-8")
    with pytest.raises(QuestionBankError, match="Error parsing YAML"):
        load_question_bank_from_file(path)
