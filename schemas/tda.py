"""Schema definitions for top-down analysis questionnaires and verdicts."""

from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from schemas.market_snapshot import MarketSnapshot

TIMEFRAMES: tuple[str, ...] = ("MN1", "W1", "DAILY", "H8", "H4", "H2", "H1", "M30", "M15", "M10")

QuestionType = Literal["CHOICE", "RATING", "FLAG", "TEXT"]
Sentiment = Literal["BULLISH", "BEARISH", "NEUTRAL"]
TradeRecommendation = Literal["LONG", "SHORT", "NEUTRAL", "AVOID"]
RiskLevel = Literal["LOW", "MEDIUM", "HIGH"]
AnalysisSource = Literal["remote", "local"]


def clamp_pct(value: float) -> float:
    """Clamp a percentage-like value into [0, 100]."""

    return max(0.0, min(100.0, float(value)))


class SerializableModel(BaseModel):
    """Base-model that standardizes JSON helpers and validation."""

    model_config = {"extra": "forbid"}

    def to_json(self, **kwargs: Any) -> str:
        return self.model_dump_json(**kwargs)

    @classmethod
    def from_json(cls, raw: str) -> "SerializableModel":
        return cls.model_validate_json(raw)


class Question(SerializableModel):
    """Questionnaire item owned by one timeframe. Reference data, never mutated."""

    model_config = {"extra": "forbid", "frozen": True}

    id: str
    timeframe: str
    text: str
    answer_type: QuestionType
    options: Optional[tuple[str, ...]] = None
    order_index: int = 0

    @field_validator("timeframe")
    @classmethod
    def _upper_timeframe(cls, value: str) -> str:
        return value.strip().upper()


# ---------------------------------------------------------------------------
# Answer values
# ---------------------------------------------------------------------------

class ChoiceValue(SerializableModel):
    kind: Literal["choice"] = "choice"
    option: str


class RatingValue(SerializableModel):
    kind: Literal["rating"] = "rating"
    level: int
    scale_max: int = Field(default=5, ge=1)


class FlagValue(SerializableModel):
    kind: Literal["flag"] = "flag"
    flag: bool


class TextValue(SerializableModel):
    kind: Literal["text"] = "text"
    text: str


class UnrecognizedValue(SerializableModel):
    """Payload that could not be coerced into any answer shape."""

    kind: Literal["unrecognized"] = "unrecognized"
    raw: Any = None


AnswerValue = Annotated[
    Union[ChoiceValue, RatingValue, FlagValue, TextValue, UnrecognizedValue],
    Field(discriminator="kind"),
]


class Answer(SerializableModel):
    """A trader's answer to one question; exactly one value shape is carried."""

    question_id: str
    analysis_id: Optional[str] = None
    value: AnswerValue


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

class TimeframeResult(SerializableModel):
    """Scored view of one timeframe."""

    timeframe: str
    probability: float
    sentiment: Sentiment
    strength: float
    reasoning: str = ""

    @field_validator("probability", "strength")
    @classmethod
    def _clamp(cls, value: float) -> float:
        return clamp_pct(value)


class AnalysisResult(SerializableModel):
    """Aggregated trade verdict. Always built fresh for each request."""

    overall_probability: float
    trade_recommendation: TradeRecommendation
    confidence_level: float
    risk_level: RiskLevel
    risk_reward_ratio: float
    ai_summary: str
    ai_reasoning: str
    entry_strategy: str
    exit_strategy: str
    position_sizing: str
    market_sentiment: str
    technical_indicators: str
    timeframe_breakdown: Dict[str, TimeframeResult]
    analysis_source: AnalysisSource = "local"

    @field_validator("overall_probability")
    @classmethod
    def _round_probability(cls, value: float) -> float:
        return round(clamp_pct(value), 2)

    @field_validator("confidence_level")
    @classmethod
    def _clamp_confidence(cls, value: float) -> float:
        return clamp_pct(value)

    @model_validator(mode="after")
    def _breakdown_keys_match(self) -> "AnalysisResult":
        for key, entry in self.timeframe_breakdown.items():
            if entry.timeframe != key:
                raise ValueError(f"timeframe_breakdown[{key!r}] describes {entry.timeframe!r}")
        return self


class AnalysisRequest(SerializableModel):
    """Everything one analysis run consumes."""

    pair: str
    selected_timeframes: List[str]
    questions: List[Question]
    answers: List[Answer]
    market_snapshot: Optional[MarketSnapshot] = None
    timeframe_notes: Dict[str, Dict[str, Any]] = Field(default_factory=dict)

    @field_validator("pair")
    @classmethod
    def _pair_not_blank(cls, value: str) -> str:
        value = value.strip().upper()
        if not value:
            raise ValueError("pair must not be blank")
        return value

    @field_validator("selected_timeframes")
    @classmethod
    def _dedupe_timeframes(cls, value: List[str]) -> List[str]:
        seen: list[str] = []
        for code in value:
            code = code.strip().upper()
            if code and code not in seen:
                seen.append(code)
        return seen

    def questions_by_id(self) -> Dict[str, Question]:
        return {question.id: question for question in self.questions}


__all__ = [
    "TIMEFRAMES",
    "QuestionType",
    "Sentiment",
    "TradeRecommendation",
    "RiskLevel",
    "AnalysisSource",
    "clamp_pct",
    "SerializableModel",
    "Question",
    "ChoiceValue",
    "RatingValue",
    "FlagValue",
    "TextValue",
    "UnrecognizedValue",
    "AnswerValue",
    "Answer",
    "TimeframeResult",
    "AnalysisResult",
    "AnalysisRequest",
]
