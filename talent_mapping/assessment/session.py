import logging
import random
from typing import Dict, List, NamedTuple, Optional, Set, Union

from pydantic import StrictBool, StrictInt, TypeAdapter

from talent_mapping.assessment import scorer
from talent_mapping.assessment.models import CategoryDefinition, InstrumentDefinition, Progress, QuestionBank, QuestionKey
from talent_mapping.cache.secure_store import PersistenceStore
from talent_mapping.constants import ANSWERS_STORAGE_KEY, FLAGS_STORAGE_KEY, Instrument
from talent_mapping.errors import (
    EncryptionError,
    IncompleteAssessmentError,
    InvalidAnswerError,
    PersistenceError,
)
from talent_mapping.results.client import ResultTransport
from talent_mapping.submission import transformer

logger = logging.getLogger(__name__)

KeyLike = Union[QuestionKey, str]

_ANSWERS_SCHEMA = TypeAdapter(Dict[str, StrictInt])
_FLAGS_SCHEMA = TypeAdapter(Dict[str, StrictBool])


class QuestionView(NamedTuple):
    key: QuestionKey
    text: str
    answer: Optional[int]
    flagged: bool


class AssessmentSession:
    """
    In-memory state of one respondent's assessment.

    Holds answers, flags and the navigation cursor. Every answer or flag change
    recomputes all category scores and writes a full snapshot to the
    persistence store. The session is the source of truth: storage failures
    are logged and never undo or block a change.
    """

    def __init__(
        self,
        bank: QuestionBank,
        store: Optional[PersistenceStore] = None,
        answers_key: str = ANSWERS_STORAGE_KEY,
        flags_key: str = FLAGS_STORAGE_KEY,
    ):
        self.bank = bank
        self._store = store
        self._answers_key = answers_key
        self._flags_key = flags_key
        self._order: List[Instrument] = [definition.id for definition in bank.instruments]

        self._answers: Dict[QuestionKey, int] = {}
        self._flags: Set[QuestionKey] = set()
        self._instrument_index = 0
        self._category_index = 0
        self._scores: Dict[Instrument, Dict[str, int]] = scorer.score_all(bank, self._answers)

    # --- Read-only views ---

    @property
    def answers(self) -> Dict[QuestionKey, int]:
        return dict(self._answers)

    @property
    def flags(self) -> Set[QuestionKey]:
        return set(self._flags)

    @property
    def scores(self) -> Dict[Instrument, Dict[str, int]]:
        return {instrument: dict(values) for instrument, values in self._scores.items()}

    @property
    def current_instrument(self) -> Instrument:
        return self._order[self._instrument_index]

    @property
    def current_category_index(self) -> int:
        return self._category_index

    def _definition(self, instrument: Optional[Instrument] = None) -> InstrumentDefinition:
        return self.bank.get(instrument or self.current_instrument)

    def get_answer(self, key: KeyLike) -> Optional[int]:
        return self._answers.get(self._coerce_key(key))

    def is_flagged(self, key: KeyLike) -> bool:
        return self._coerce_key(key) in self._flags

    def flagged_count(self) -> int:
        return len(self._flags)

    def current_category(self) -> CategoryDefinition:
        return self._definition().categories[self._category_index]

    def questions_for_category(self, index: Optional[int] = None) -> List[QuestionView]:
        """The active instrument's questions on one category page, defaulting to the current page."""
        definition = self._definition()
        if index is None:
            index = self._category_index
        if not 0 <= index < len(definition.categories):
            return []
        return [
            QuestionView(
                key=key,
                text=definition.question_text(key),
                answer=self._answers.get(key),
                flagged=key in self._flags,
            )
            for key in definition.category_slots(definition.categories[index])
        ]

    # --- Mutations ---

    def _coerce_key(self, key: KeyLike) -> QuestionKey:
        if isinstance(key, QuestionKey):
            return key
        try:
            return QuestionKey.parse(key)
        except (ValueError, AttributeError) as e:
            raise InvalidAnswerError(f"Invalid question key {key!r}: {e}") from e

    def _require_known(self, key: KeyLike) -> QuestionKey:
        question_key = self._coerce_key(key)
        if not self.bank.contains(question_key):
            raise InvalidAnswerError(f"Question '{question_key}' is not part of the assessment")
        return question_key

    def _require_instrument(self, instrument: Instrument) -> InstrumentDefinition:
        try:
            return self.bank.get(Instrument(instrument))
        except (ValueError, KeyError) as e:
            raise InvalidAnswerError(f"Unknown instrument {instrument!r}") from e

    def set_answer(self, key: KeyLike, value: int) -> None:
        """
        Records an answer, overwriting any previous one.

        Raises:
            InvalidAnswerError: The key is unknown or the value is outside the
                instrument's scale. Nothing is written in that case.
        """
        question_key = self._require_known(key)
        definition = self._definition(question_key.instrument)
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidAnswerError(f"Answer for '{question_key}' must be an integer, got {value!r}")
        if not definition.scale_min <= value <= definition.scale_max:
            raise InvalidAnswerError(
                f"Answer {value} for '{question_key}' is outside the scale "
                f"{definition.scale_min}-{definition.scale_max}"
            )

        self._answers[question_key] = value
        self._after_mutation()

    def toggle_flag(self, key: KeyLike) -> bool:
        """Flips the flag on a question. Returns whether it is flagged afterwards."""
        question_key = self._require_known(key)
        if question_key in self._flags:
            self._flags.discard(question_key)
            flagged = False
        else:
            self._flags.add(question_key)
            flagged = True
        self._after_mutation()
        return flagged

    def auto_fill(self, instrument: Optional[Instrument] = None, rng: Optional[random.Random] = None) -> int:
        """
        Answers every question of one instrument (or all of them) with random
        in-range values. Demo and testing aid; goes through ``set_answer``.
        """
        rng = rng or random.Random()
        if instrument is None:
            targets = self.bank.instruments
        else:
            targets = [self._require_instrument(instrument)]
        filled = 0
        for definition in targets:
            for key in definition.slots():
                self.set_answer(key, rng.randint(definition.scale_min, definition.scale_max))
                filled += 1
        logger.info(f"Auto-filled {filled} answers", extra={"instrument": instrument})
        return filled

    def _after_mutation(self) -> None:
        self._scores = scorer.score_all(self.bank, self._answers)
        self._persist()

    # --- Navigation (never raises, never wraps) ---

    def navigate_to_instrument(self, instrument: Instrument) -> None:
        try:
            index = self._order.index(Instrument(instrument))
        except ValueError:
            logger.debug(f"Ignoring navigation to unknown instrument {instrument!r}")
            return
        if index != self._instrument_index:
            self._instrument_index = index
            self._category_index = 0

    def navigate_to_category(self, index: int) -> None:
        if isinstance(index, bool) or not isinstance(index, int):
            logger.debug(f"Ignoring navigation to category {index!r}")
            return
        if 0 <= index < len(self._definition().categories):
            self._category_index = index

    def next_category(self) -> None:
        self.navigate_to_category(self._category_index + 1)

    def previous_category(self) -> None:
        if self._category_index > 0:
            self.navigate_to_category(self._category_index - 1)

    def next_instrument(self) -> None:
        if self._instrument_index + 1 < len(self._order):
            self.navigate_to_instrument(self._order[self._instrument_index + 1])

    def previous_instrument(self) -> None:
        if self._instrument_index > 0:
            self.navigate_to_instrument(self._order[self._instrument_index - 1])

    def is_first_category(self) -> bool:
        return self._category_index == 0

    def is_last_category(self) -> bool:
        return self._category_index == len(self._definition().categories) - 1

    # --- Progress and completion ---

    def current_progress(self) -> Progress:
        return scorer.instrument_progress(self._definition(), self._answers)

    def overall_progress(self) -> Progress:
        answered = sum(scorer.count_answered(d, self._answers) for d in self.bank.instruments)
        return scorer.make_progress(answered, self.bank.total_questions)

    def is_instrument_complete(self, instrument: Instrument) -> bool:
        return scorer.is_instrument_complete(self._require_instrument(instrument), self._answers)

    def is_all_complete(self) -> bool:
        return all(self.is_instrument_complete(instrument) for instrument in self._order)

    # --- Persistence ---

    def _write(self, storage_key: str, value: Dict) -> None:
        try:
            self._store.save(storage_key, value)
        except EncryptionError as e:
            logger.warning(f"Encryption failed for '{storage_key}', saving unencrypted copy: {e}")
            try:
                self._store.save_unencrypted(storage_key, value)
            except PersistenceError as fallback_error:
                logger.error(f"Fallback save failed for '{storage_key}': {fallback_error}")
        except PersistenceError as e:
            logger.error(f"Failed to save '{storage_key}': {e}")

    def _persist(self) -> None:
        if self._store is None:
            return
        self._write(self._answers_key, {str(k): v for k, v in sorted(self._answers.items())})
        self._write(self._flags_key, {str(k): True for k in sorted(self._flags)})

    def restore(self) -> bool:
        """
        Reloads answers and flags saved by an earlier session.

        Legacy plaintext entries are migrated to encrypted storage first.
        Entries for questions no longer in the bank, or with out-of-scale
        values, are dropped. Returns True when any state was restored.
        """
        if self._store is None:
            return False

        for storage_key in (self._answers_key, self._flags_key):
            self._store.migrate(storage_key)

        saved_answers = self._store.load(self._answers_key, schema=_ANSWERS_SCHEMA) or {}
        saved_flags = self._store.load(self._flags_key, schema=_FLAGS_SCHEMA) or {}

        answers: Dict[QuestionKey, int] = {}
        for raw_key, value in saved_answers.items():
            key = self._restorable_key(raw_key)
            if key is None:
                continue
            definition = self._definition(key.instrument)
            if definition.scale_min <= value <= definition.scale_max:
                answers[key] = value
            else:
                logger.warning(
                    f"Dropping restored answer {value} for '{raw_key}': outside scale",
                    extra={"question_key": key},
                )

        flags: Set[QuestionKey] = set()
        for raw_key, flagged in saved_flags.items():
            key = self._restorable_key(raw_key)
            if key is not None and flagged:
                flags.add(key)

        self._answers = answers
        self._flags = flags
        self._scores = scorer.score_all(self.bank, self._answers)
        logger.info(f"Restored {len(answers)} answers and {len(flags)} flags")
        return bool(answers or flags)

    def _restorable_key(self, raw_key: str) -> Optional[QuestionKey]:
        try:
            key = QuestionKey.parse(raw_key)
        except ValueError:
            logger.warning(f"Dropping restored entry with malformed key '{raw_key}'")
            return None
        if not self.bank.contains(key):
            logger.warning(f"Dropping restored entry for unknown question '{raw_key}'")
            return None
        return key

    # --- Submission ---

    async def submit(self, client: ResultTransport) -> str:
        """
        Transforms, validates and submits the completed assessment.

        Answers, flags and their persisted copies are cleared only once the
        backend has acknowledged the submission.

        Returns:
            The backend job id.

        Raises:
            IncompleteAssessmentError: Some questions are still unanswered.
            ScoreValidationError: The payload could not be built or is invalid.
            TransportError: The submission call failed. Nothing is cleared.
        """
        if not self.is_all_complete():
            incomplete = [i.value for i in self._order if not self.is_instrument_complete(i)]
            raise IncompleteAssessmentError(
                "All assessments must be completed before submitting", errors=incomplete
            )

        payload = transformer.transform(self._scores)

        job_id = await client.submit_assessment(payload)

        self._answers.clear()
        self._flags.clear()
        self._scores = scorer.score_all(self.bank, self._answers)
        if self._store is not None:
            for storage_key in (self._answers_key, self._flags_key):
                try:
                    self._store.remove(storage_key)
                except PersistenceError as e:
                    logger.error(f"Failed to clear '{storage_key}' after submission: {e}")
        logger.info(f"Assessment submitted as job {job_id}; local state cleared", extra={"job_id": job_id})
        return job_id
