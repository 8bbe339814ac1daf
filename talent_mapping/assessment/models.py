from dataclasses import dataclass
from typing import List, NamedTuple, Optional

from pydantic import BaseModel, Field

from talent_mapping.constants import Instrument

REVERSE_MARKER = "reverse"


@dataclass(frozen=True, order=True)
class QuestionKey:
    """
    Identifies one question slot.

    Ordering follows field order, so keys sort by instrument, category,
    then index with regular items before reverse items of the same index.
    The string form is what gets persisted.
    """
    instrument: Instrument
    category: str
    index: int
    is_reverse: bool = False

    def __str__(self) -> str:
        if self.is_reverse:
            return f"{self.instrument.value}_{self.category}_{REVERSE_MARKER}_{self.index}"
        return f"{self.instrument.value}_{self.category}_{self.index}"

    @classmethod
    def parse(cls, raw: str) -> "QuestionKey":
        """Parses the persisted form, e.g. ``bigFive_openness_reverse_1``."""
        parts = raw.split("_")
        if len(parts) == 3:
            instrument_id, category, index = parts
            is_reverse = False
        elif len(parts) == 4 and parts[2] == REVERSE_MARKER:
            instrument_id, category, _, index = parts
            is_reverse = True
        else:
            raise ValueError(f"Malformed question key: '{raw}'")

        try:
            instrument = Instrument(instrument_id)
        except ValueError:
            raise ValueError(f"Unknown instrument '{instrument_id}' in question key '{raw}'")
        if not category:
            raise ValueError(f"Empty category in question key '{raw}'")
        if not index.isdigit():
            raise ValueError(f"Invalid index '{index}' in question key '{raw}'")
        return cls(instrument, category, int(index), is_reverse)


class Progress(NamedTuple):
    answered: int
    total: int
    percentage: int


class ScaleOption(BaseModel):
    value: int
    label: str


class CategoryDefinition(BaseModel):
    key: str
    name: str
    questions: List[str]
    reverse_questions: List[str] = Field(default_factory=list)

    @property
    def question_count(self) -> int:
        return len(self.questions) + len(self.reverse_questions)


class InstrumentDefinition(BaseModel):
    id: Instrument
    title: str
    description: str = ""
    scale: List[ScaleOption]
    categories: List[CategoryDefinition]

    @property
    def scale_min(self) -> int:
        return min(option.value for option in self.scale)

    @property
    def scale_max(self) -> int:
        return max(option.value for option in self.scale)

    @property
    def total_questions(self) -> int:
        return sum(category.question_count for category in self.categories)

    def category(self, key: str) -> Optional[CategoryDefinition]:
        for category in self.categories:
            if category.key == key:
                return category
        return None

    def category_slots(self, category: CategoryDefinition) -> List[QuestionKey]:
        slots = [QuestionKey(self.id, category.key, i) for i in range(len(category.questions))]
        slots.extend(
            QuestionKey(self.id, category.key, i, is_reverse=True)
            for i in range(len(category.reverse_questions))
        )
        return slots

    def slots(self) -> List[QuestionKey]:
        """Every question slot of the instrument, in presentation order."""
        keys: List[QuestionKey] = []
        for category in self.categories:
            keys.extend(self.category_slots(category))
        return keys

    def question_text(self, key: QuestionKey) -> Optional[str]:
        category = self.category(key.category)
        if category is None or key.instrument != self.id:
            return None
        items = category.reverse_questions if key.is_reverse else category.questions
        if 0 <= key.index < len(items):
            return items[key.index]
        return None

    def contains(self, key: QuestionKey) -> bool:
        return self.question_text(key) is not None


class QuestionBank(BaseModel):
    version: str
    instruments: List[InstrumentDefinition]

    def get(self, instrument: Instrument) -> InstrumentDefinition:
        for definition in self.instruments:
            if definition.id == instrument:
                return definition
        raise KeyError(f"Instrument '{instrument}' not present in question bank")

    def contains(self, key: QuestionKey) -> bool:
        try:
            return self.get(key.instrument).contains(key)
        except KeyError:
            return False

    @property
    def total_questions(self) -> int:
        return sum(definition.total_questions for definition in self.instruments)
