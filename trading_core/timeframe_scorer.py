"""Score a single timeframe from its normalized answer contributions."""

from __future__ import annotations

from typing import Iterable, Mapping, Sequence

from app.core.logging import get_logger
from schemas.tda import Answer, Question, TimeframeResult
from trading_core.answer_normalizer import AnswerNormalizer, Contribution
from trading_core.config import DEFAULT_SCORING_CONFIG, ScoringConfig

LOG = get_logger(__name__)


class TimeframeScorer:
    def __init__(
        self,
        config: ScoringConfig = DEFAULT_SCORING_CONFIG,
        normalizer: AnswerNormalizer | None = None,
    ) -> None:
        self.config = config
        self.normalizer = normalizer or AnswerNormalizer(config)

    def score_contributions(self, timeframe: str, contributions: Sequence[Contribution]) -> TimeframeResult:
        """Fold contributions into a score, sentiment, strength and trace."""

        cfg = self.config
        score = cfg.base_score
        bullish = bearish = 0
        reasons: list[str] = []
        for contribution in contributions:
            score += contribution.score_delta
            if contribution.direction > 0:
                bullish += 1
            elif contribution.direction < 0:
                bearish += 1
            if contribution.reason:
                reasons.append(contribution.reason)
        score = max(0.0, min(100.0, score))

        if bullish > bearish and score > cfg.bullish_score_floor:
            sentiment = "BULLISH"
        elif bearish > bullish and score < cfg.bearish_score_ceiling:
            sentiment = "BEARISH"
        else:
            sentiment = "NEUTRAL"

        total = len(contributions)
        strength = min(100.0, max(bullish, bearish) / total * 100) if total else 0.0

        return TimeframeResult(
            timeframe=timeframe,
            probability=score,
            sentiment=sentiment,
            strength=strength,
            reasoning="; ".join(reasons),
        )

    def score_timeframe(
        self,
        timeframe: str,
        answers: Iterable[Answer],
        questions: Mapping[str, Question],
    ) -> TimeframeResult:
        """Score every answer whose question belongs to ``timeframe``.

        Answers referencing unknown questions are skipped and not counted.
        """

        contributions: list[Contribution] = []
        for answer in answers:
            question = questions.get(answer.question_id)
            if question is None or question.timeframe != timeframe:
                continue
            contributions.append(self.normalizer.normalize(answer, question))
        result = self.score_contributions(timeframe, contributions)
        LOG.debug(
            "timeframe scored",
            timeframe=timeframe,
            answers=len(contributions),
            probability=result.probability,
            sentiment=result.sentiment,
        )
        return result


__all__ = ["TimeframeScorer"]
