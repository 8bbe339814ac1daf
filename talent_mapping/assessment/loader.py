import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

import yaml
from pydantic import ValidationError

from talent_mapping.assessment.models import QuestionBank
from talent_mapping.constants import Instrument
from talent_mapping.errors import QuestionBankError

logger = logging.getLogger(__name__)

DEFAULT_QUESTION_BANK_PATH = Path(__file__).parent / "data" / "question_bank.yml"


def load_question_bank_data(data: Dict[str, Any]) -> QuestionBank:
    """
    Validates the raw dictionary data against the QuestionBank model
    and performs additional consistency checks.
    """
    try:
        bank = QuestionBank.model_validate(data)
    except ValidationError as e:
        raise QuestionBankError(f"Question bank does not match schema: {e}") from e

    instrument_ids = [definition.id for definition in bank.instruments]
    if len(instrument_ids) != len(set(instrument_ids)):
        raise QuestionBankError(f"Duplicate instrument in question bank: {instrument_ids}")
    missing = set(Instrument) - set(instrument_ids)
    if missing:
        raise QuestionBankError(
            f"Question bank is missing instruments: {sorted(m.value for m in missing)}"
        )

    for definition in bank.instruments:
        values = sorted(option.value for option in definition.scale)
        if len(values) < 2:
            raise QuestionBankError(f"Scale for '{definition.id.value}' needs at least two points")
        if values != list(range(values[0], values[-1] + 1)):
            raise QuestionBankError(
                f"Scale for '{definition.id.value}' must be contiguous integers, got {values}"
            )

        if not definition.categories:
            raise QuestionBankError(f"Instrument '{definition.id.value}' has no categories")

        category_keys = set()
        for category in definition.categories:
            if category.key in category_keys:
                raise QuestionBankError(
                    f"Duplicate category '{category.key}' in instrument '{definition.id.value}'"
                )
            if "_" in category.key:
                # Underscore separates the parts of a persisted question key
                raise QuestionBankError(
                    f"Category key '{category.key}' in '{definition.id.value}' must not contain '_'"
                )
            if category.question_count == 0:
                raise QuestionBankError(
                    f"Category '{category.key}' in '{definition.id.value}' has no questions"
                )
            category_keys.add(category.key)

    # Keep the administration order regardless of file order
    order = Instrument.ordered()
    bank.instruments.sort(key=lambda d: order.index(d.id))
    return bank


def load_question_bank_from_file(file_path) -> QuestionBank:
    """
    Loads a question bank from a YAML file, validates it,
    and returns a QuestionBank object.
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise QuestionBankError(f"File not found: {file_path}")
    except yaml.YAMLError as e:
        raise QuestionBankError(f"Error parsing YAML file {file_path}: {e}")

    if data is None:
        raise QuestionBankError(f"YAML file is empty or invalid: {file_path}")

    bank = load_question_bank_data(data)
    logger.info(
        f"Loaded question bank v{bank.version} from {file_path}: "
        f"{bank.total_questions} questions across {len(bank.instruments)} instruments"
    )
    return bank


@lru_cache(maxsize=1)
def get_question_bank() -> QuestionBank:
    """The bundled question bank, loaded once per process."""
    return load_question_bank_from_file(DEFAULT_QUESTION_BANK_PATH)
