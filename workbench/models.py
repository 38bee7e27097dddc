"""
Pydantic models for structured LLM output.

These define the JSON the model must return at each pipeline stage, so
responses can be validated before they reach the caller. Wire names
(``overallScore``, ``pergunta_capciosa`` ...) are kept as aliases because
the front end consumes them verbatim.
"""
from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator

SCORE_MIN = 0
SCORE_MAX = 10

SECTION_TITLES = ("Clarity", "Persona", "Rules/Constraints", "Structure")


def clamp_score(value: Any) -> int:
    """Coerce a model-produced score into an int within [0, 10]."""
    if isinstance(value, bool):
        raise ValueError("score must be a number")
    if isinstance(value, str):
        value = value.strip()
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"score is not numeric: {value!r}")
    if number != number:  # NaN
        raise ValueError("score is NaN")
    return int(round(max(SCORE_MIN, min(SCORE_MAX, number))))


Score = Annotated[int, BeforeValidator(clamp_score)]


class AnalysisSection(BaseModel):
    title: str = Field(default="", description="One of SECTION_TITLES")
    score: Score = 0
    feedback: str = ""


class PromptAnalysis(BaseModel):
    """Quality assessment of a system prompt."""
    model_config = ConfigDict(populate_by_name=True)

    overall_score: Score = Field(default=0, alias="overallScore")
    sections: List[AnalysisSection] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)

    @field_validator("suggestions", mode="before")
    @classmethod
    def stringify_suggestions(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if not isinstance(value, list):
            value = [value]
        return [str(item) for item in value if item is not None]


class StressTest(BaseModel):
    """An adversarial question plus the answer a well-behaved agent should give."""
    model_config = ConfigDict(populate_by_name=True)

    question: str = Field(alias="pergunta_capciosa")
    ideal_answer: str = Field(alias="resposta_ideal")


class Evaluation(BaseModel):
    score: Score
    feedback: str = ""


class ConversationReply(BaseModel):
    response: str
    conversation_id: Optional[str] = None


class AnalyzeResult(BaseModel):
    analysis: PromptAnalysis
    stress_tests: List[StressTest] = Field(default_factory=list)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class WorkflowResult(BaseModel):
    result: Dict[str, Any]
    stress_tests: List[StressTest] = Field(default_factory=list)
    diagnostics: List[str] = Field(default_factory=list, exclude=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)
