from typing import Any, Dict, List, Literal, NamedTuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from talent_mapping.constants import ASSESSMENT_NAME

Score = int


class WireModel(BaseModel):
    """Base for models exchanged with the scoring backend (camelCase on the wire)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RiasecScores(WireModel):
    realistic: Score = Field(..., ge=0, le=100)
    investigative: Score = Field(..., ge=0, le=100)
    artistic: Score = Field(..., ge=0, le=100)
    social: Score = Field(..., ge=0, le=100)
    enterprising: Score = Field(..., ge=0, le=100)
    conventional: Score = Field(..., ge=0, le=100)


class OceanScores(WireModel):
    openness: Score = Field(..., ge=0, le=100)
    conscientiousness: Score = Field(..., ge=0, le=100)
    extraversion: Score = Field(..., ge=0, le=100)
    agreeableness: Score = Field(..., ge=0, le=100)
    neuroticism: Score = Field(..., ge=0, le=100)


class ViaIsScores(WireModel):
    """The 24 VIA character strengths."""
    creativity: Score = Field(..., ge=0, le=100)
    curiosity: Score = Field(..., ge=0, le=100)
    judgment: Score = Field(..., ge=0, le=100)
    love_of_learning: Score = Field(..., ge=0, le=100)
    perspective: Score = Field(..., ge=0, le=100)
    bravery: Score = Field(..., ge=0, le=100)
    perseverance: Score = Field(..., ge=0, le=100)
    honesty: Score = Field(..., ge=0, le=100)
    zest: Score = Field(..., ge=0, le=100)
    love: Score = Field(..., ge=0, le=100)
    kindness: Score = Field(..., ge=0, le=100)
    social_intelligence: Score = Field(..., ge=0, le=100)
    teamwork: Score = Field(..., ge=0, le=100)
    fairness: Score = Field(..., ge=0, le=100)
    leadership: Score = Field(..., ge=0, le=100)
    forgiveness: Score = Field(..., ge=0, le=100)
    humility: Score = Field(..., ge=0, le=100)
    prudence: Score = Field(..., ge=0, le=100)
    self_regulation: Score = Field(..., ge=0, le=100)
    appreciation_of_beauty: Score = Field(..., ge=0, le=100)
    gratitude: Score = Field(..., ge=0, le=100)
    hope: Score = Field(..., ge=0, le=100)
    humor: Score = Field(..., ge=0, le=100)
    spirituality: Score = Field(..., ge=0, le=100)


class SubmissionPayload(WireModel):
    """
    Body of ``POST /api/assessment/submit``.

    Build it through ``transformer.transform``; constructing it directly with
    out-of-range values raises pydantic's ValidationError.
    """
    assessment_name: Literal["AI-Driven Talent Mapping"] = Field(
        default=ASSESSMENT_NAME, description="Fixed literal expected by the backend"
    )
    riasec: RiasecScores
    ocean: OceanScores
    via_is: ViaIsScores

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class SubmitResponseData(WireModel):
    job_id: str


class SubmitResponse(WireModel):
    success: bool = True
    data: SubmitResponseData


class ValidationResult(NamedTuple):
    is_valid: bool
    errors: List[str]
