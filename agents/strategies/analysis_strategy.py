"""Remote and local analysis strategies sharing one output contract."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Protocol

from pydantic import ValidationError

from agents.strategies.llm_client import AnalysisLLMClient
from app.core.config import Settings, get_settings
from app.core.errors import ExternalServiceError, MalformedResponseError
from app.core.logging import get_logger
from schemas.tda import AnalysisRequest, AnalysisResult, TimeframeResult
from services.response_assembler import assemble_result
from trading_core.aggregation_engine import AggregationEngine, Verdict
from trading_core.timeframe_scorer import TimeframeScorer

LOG = get_logger(__name__)

_RESULT_FIELDS = set(AnalysisResult.model_fields) - {"risk_reward_ratio", "analysis_source", "timeframe_breakdown"}
_BREAKDOWN_FIELDS = set(TimeframeResult.model_fields)


class AnalysisStrategy(Protocol):
    name: str

    def run(self, request: AnalysisRequest) -> AnalysisResult: ...


class LocalStrategy:
    """Deterministic scoring path. Performs no I/O."""

    name = "local"

    def __init__(self, scorer: TimeframeScorer | None = None, engine: AggregationEngine | None = None) -> None:
        self.scorer = scorer or TimeframeScorer()
        self.engine = engine or AggregationEngine()

    def score_timeframes(self, request: AnalysisRequest) -> Dict[str, TimeframeResult]:
        questions = request.questions_by_id()
        return {
            timeframe: self.scorer.score_timeframe(timeframe, request.answers, questions)
            for timeframe in request.selected_timeframes
        }

    def run(self, request: AnalysisRequest) -> AnalysisResult:
        results = self.score_timeframes(request)
        verdict = self.engine.evaluate(results, request.selected_timeframes, request.market_snapshot)
        LOG.info(
            "local analysis complete",
            pair=request.pair,
            probability=verdict.overall_probability,
            recommendation=verdict.trade_recommendation,
            reference_timeframe=verdict.reference_timeframe,
        )
        return assemble_result(
            request.pair,
            request.selected_timeframes,
            results,
            verdict,
            request.market_snapshot,
            source="local",
        )


class RemoteStrategy:
    """Generative-service path that hands the same request to a local fallback on any failure."""

    name = "remote"

    def __init__(
        self,
        client: AnalysisLLMClient,
        fallback: LocalStrategy | None = None,
        engine: AggregationEngine | None = None,
    ) -> None:
        self.client = client
        self.fallback = fallback or LocalStrategy()
        self.engine = engine or self.fallback.engine

    def run(self, request: AnalysisRequest) -> AnalysisResult:
        result = self.attempt(request)
        if result is None:
            LOG.warning("remote analysis unavailable; using local strategy", pair=request.pair)
            return self.fallback.run(request)
        return result

    def attempt(self, request: AnalysisRequest) -> Optional[AnalysisResult]:
        """Return the validated remote result, or ``None`` when it cannot be used."""

        if not self.client.available:
            LOG.warning("no credential for the analysis model")
            return None
        try:
            payload = self.client.request_analysis(request)
            return self.to_result(payload, request)
        except (ExternalServiceError, MalformedResponseError) as exc:
            LOG.warning("remote analysis failed", error=str(exc), error_type=type(exc).__name__)
        except Exception as exc:
            LOG.warning("remote analysis raised unexpectedly", error=str(exc), error_type=type(exc).__name__)
        return None

    def to_result(self, payload: Mapping[str, Any], request: AnalysisRequest) -> AnalysisResult:
        """Validate a parsed completion against the result contract and apply market adjustment."""

        selected = request.selected_timeframes
        breakdown = payload.get("timeframe_breakdown")
        if not isinstance(breakdown, Mapping):
            raise MalformedResponseError("timeframe_breakdown missing or not an object")
        if set(breakdown) != set(selected):
            raise MalformedResponseError(
                f"timeframe_breakdown keys {sorted(breakdown)} do not match selection {sorted(selected)}"
            )
        try:
            results: Dict[str, TimeframeResult] = {}
            for timeframe in selected:
                entry = breakdown[timeframe]
                if not isinstance(entry, Mapping):
                    raise MalformedResponseError(f"timeframe_breakdown[{timeframe!r}] is not an object")
                fields = {key: value for key, value in entry.items() if key in _BREAKDOWN_FIELDS}
                fields["timeframe"] = timeframe
                results[timeframe] = TimeframeResult.model_validate(fields)

            draft = AnalysisResult.model_validate(
                {
                    **{key: value for key, value in payload.items() if key in _RESULT_FIELDS},
                    "risk_reward_ratio": 0.0,
                    "timeframe_breakdown": results,
                    "analysis_source": "remote",
                }
            )
        except ValidationError as exc:
            raise MalformedResponseError(f"completion does not match the result schema: {exc}") from exc

        verdict = Verdict(
            overall_probability=draft.overall_probability,
            trade_recommendation=draft.trade_recommendation,
            confidence_level=draft.confidence_level,
            risk_level=draft.risk_level,
            risk_reward_ratio=self.engine.config.risk_reward_for(draft.risk_level),
        )
        verdict = self.engine.adjust_for_market(verdict, list(results.values()), request.market_snapshot)
        return draft.model_copy(
            update={
                "overall_probability": verdict.overall_probability,
                "confidence_level": verdict.confidence_level,
                "risk_level": verdict.risk_level,
                "risk_reward_ratio": verdict.risk_reward_ratio,
            }
        )


def select_strategy(
    settings: Optional[Settings] = None,
    client: Optional[AnalysisLLMClient] = None,
) -> AnalysisStrategy:
    """Pick the remote strategy when a model is reachable by configuration, else local."""

    settings = settings or get_settings()
    local = LocalStrategy()
    if settings.analysis_mode == "local":
        return local
    if client is not None:
        return RemoteStrategy(client, fallback=local)
    if settings.openai_api_key is None:
        return local
    return RemoteStrategy(AnalysisLLMClient(settings), fallback=local)


__all__ = ["AnalysisStrategy", "LocalStrategy", "RemoteStrategy", "select_strategy"]
