"""Request validation, answer coercion and entry points for one analysis run."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from agents.strategies.analysis_strategy import AnalysisStrategy, select_strategy
from app.core.config import Settings, get_settings
from app.core.errors import InvalidInputError
from app.core.logging import get_logger
from schemas.tda import (
    AnalysisRequest,
    AnalysisResult,
    Answer,
    ChoiceValue,
    FlagValue,
    Question,
    RatingValue,
    TextValue,
    UnrecognizedValue,
)
from services.market_data_worker import MarketDataWorker
from services.market_snapshot_adapter import snapshot_from_mapping

LOG = get_logger(__name__)

REQUIRED_FIELDS = ("pair", "selected_timeframes", "questions", "answers")

QUESTION_TYPE_ALIASES = {
    "CHOICE": "CHOICE",
    "MULTIPLE_CHOICE": "CHOICE",
    "RATING": "RATING",
    "FLAG": "FLAG",
    "BOOLEAN": "FLAG",
    "TEXT": "TEXT",
}
_TRUTHY_FLAGS = {"true", "yes"}


def coerce_question(raw: Mapping[str, Any]) -> Optional[Question]:
    """Build a ``Question`` from stored reference data; unsupported types yield ``None``."""

    raw_type = str(raw.get("answer_type") or raw.get("question_type") or "").strip().upper()
    answer_type = QUESTION_TYPE_ALIASES.get(raw_type)
    if answer_type is None:
        LOG.debug("skipping question with unsupported type", question_id=raw.get("id"), question_type=raw_type)
        return None
    options = raw.get("options")
    return Question(
        id=str(raw["id"]),
        timeframe=str(raw["timeframe"]),
        text=str(raw.get("text") or raw.get("question_text") or ""),
        answer_type=answer_type,
        options=tuple(str(option) for option in options) if options else None,
        order_index=int(raw.get("order_index") or 0),
    )


def _rating_from_raw(raw: Any, question: Question):
    if isinstance(raw, bool):
        return UnrecognizedValue(raw=raw)
    if isinstance(raw, (int, float)):
        if float(raw).is_integer():
            return RatingValue(level=int(raw))
        return UnrecognizedValue(raw=raw)
    if isinstance(raw, str):
        text = raw.strip()
        if question.options:
            labels = [option.strip().lower() for option in question.options]
            if text.lower() in labels:
                return RatingValue(level=labels.index(text.lower()) + 1, scale_max=len(labels))
        level, _, scale = text.partition("/")
        try:
            if scale:
                return RatingValue(level=int(level), scale_max=int(scale))
            return RatingValue(level=int(level))
        except (ValueError, ValidationError):
            return UnrecognizedValue(raw=raw)
    return UnrecognizedValue(raw=raw)


def coerce_answer_value(question: Question, raw: Any):
    """Map a loosely typed stored answer onto the answer-value union for ``question``."""

    kind = question.answer_type
    if kind == "CHOICE":
        return ChoiceValue(option=raw) if isinstance(raw, str) else UnrecognizedValue(raw=raw)
    if kind == "RATING":
        return _rating_from_raw(raw, question)
    if kind == "FLAG":
        truthy = raw is True or (isinstance(raw, str) and raw.strip().lower() in _TRUTHY_FLAGS)
        return FlagValue(flag=truthy)
    if raw is None:
        return UnrecognizedValue(raw=raw)
    return TextValue(text=raw if isinstance(raw, str) else str(raw))


def coerce_answer(raw: Mapping[str, Any], questions: Mapping[str, Question]) -> Answer:
    """Accept either a typed ``value`` or the stored ``answer_text`` / ``answer_value`` columns."""

    question_id = str(raw["question_id"])
    analysis_id = raw.get("analysis_id")
    analysis_id = str(analysis_id) if analysis_id is not None else None
    if isinstance(raw.get("value"), Mapping) and "kind" in raw["value"]:
        try:
            return Answer(question_id=question_id, analysis_id=analysis_id, value=raw["value"])
        except ValidationError:
            value = UnrecognizedValue(raw=dict(raw["value"]))
            return Answer(question_id=question_id, analysis_id=analysis_id, value=value)
    stored = raw.get("answer_text") or raw.get("answer_value")
    question = questions.get(question_id)
    if question is None:
        value = UnrecognizedValue(raw=stored)
    else:
        value = coerce_answer_value(question, stored)
    return Answer(question_id=question_id, analysis_id=analysis_id, value=value)


def build_request(payload: Mapping[str, Any]) -> AnalysisRequest:
    """Validate a raw request payload and coerce it into an ``AnalysisRequest``.

    Raises ``InvalidInputError`` before any scoring when a required field is
    missing or unusable.
    """

    if not isinstance(payload, Mapping):
        raise InvalidInputError(f"analysis request must be an object, got {type(payload).__name__}")
    missing = [name for name in REQUIRED_FIELDS if payload.get(name) is None]
    pair = payload.get("pair")
    if "pair" not in missing and not str(pair).strip():
        missing.append("pair")
    if missing:
        raise InvalidInputError(f"missing required fields: {', '.join(missing)}", fields=missing)
    for name in ("selected_timeframes", "questions", "answers"):
        if isinstance(payload[name], (str, bytes, Mapping)) or not isinstance(payload[name], Iterable):
            raise InvalidInputError(f"{name} must be a list", fields=[name])

    try:
        questions: List[Question] = []
        for raw in payload["questions"]:
            if isinstance(raw, Question):
                questions.append(raw)
                continue
            question = coerce_question(raw)
            if question is not None:
                questions.append(question)
        by_id = {question.id: question for question in questions}
        answers = [
            raw if isinstance(raw, Answer) else coerce_answer(raw, by_id)
            for raw in payload["answers"]
        ]
        snapshot = payload.get("market_snapshot")
        if snapshot is not None and not hasattr(snapshot, "model_dump"):
            snapshot = snapshot_from_mapping(snapshot)
        return AnalysisRequest(
            pair=str(pair),
            selected_timeframes=list(payload["selected_timeframes"]),
            questions=questions,
            answers=answers,
            market_snapshot=snapshot,
            timeframe_notes=dict(payload.get("timeframe_notes") or {}),
        )
    except ValidationError as exc:
        raise InvalidInputError(f"invalid analysis request: {exc}") from exc
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise InvalidInputError(f"invalid analysis request: {exc}") from exc


def run_analysis(
    request: Union[AnalysisRequest, Mapping[str, Any]],
    strategy: Optional[AnalysisStrategy] = None,
    settings: Optional[Settings] = None,
) -> AnalysisResult:
    """Run one analysis. Only ``InvalidInputError`` can escape."""

    if not isinstance(request, AnalysisRequest):
        request = build_request(request)
    strategy = strategy or select_strategy(settings)
    LOG.info("running analysis", pair=request.pair, strategy=strategy.name, timeframes=request.selected_timeframes)
    return strategy.run(request)


async def analyze_with_market_data(
    request: Union[AnalysisRequest, Mapping[str, Any]],
    *,
    strategy: Optional[AnalysisStrategy] = None,
    worker: Optional[MarketDataWorker] = None,
    settings: Optional[Settings] = None,
) -> AnalysisResult:
    """Fetch a market snapshot when the request lacks one, then run the analysis."""

    if not isinstance(request, AnalysisRequest):
        request = build_request(request)
    settings = settings or get_settings()
    if request.market_snapshot is None:
        worker = worker or MarketDataWorker(settings)
        snapshot = await worker.fetch_snapshot(request.pair)
        if snapshot is not None:
            request = request.model_copy(update={"market_snapshot": snapshot})
    strategy = strategy or select_strategy(settings)
    return await asyncio.to_thread(run_analysis, request, strategy, settings)


def to_persistence_records(analysis_id: str, result: AnalysisResult) -> Tuple[Dict[str, Any], List[Dict[str, Any]]]:
    """Latest-result record plus one record per selected timeframe.

    Records replace whatever was stored for ``analysis_id``; timestamps are
    added by the storage layer.
    """

    analysis = {
        "id": analysis_id,
        "status": "COMPLETED",
        "overall_probability": result.overall_probability,
        "trade_recommendation": result.trade_recommendation,
        "confidence_level": result.confidence_level,
        "risk_level": result.risk_level,
        "ai_summary": result.ai_summary,
        "ai_reasoning": result.ai_reasoning,
    }
    timeframes = [
        {
            "analysis_id": analysis_id,
            "timeframe": timeframe,
            "timeframe_probability": entry.probability,
            "timeframe_sentiment": entry.sentiment,
            "timeframe_strength": entry.strength,
            "analysis_data": {"ai_reasoning": entry.reasoning},
        }
        for timeframe, entry in result.timeframe_breakdown.items()
    ]
    return analysis, timeframes


__all__ = [
    "REQUIRED_FIELDS",
    "coerce_question",
    "coerce_answer_value",
    "coerce_answer",
    "build_request",
    "run_analysis",
    "analyze_with_market_data",
    "to_persistence_records",
]
