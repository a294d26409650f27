"""Translate one questionnaire answer into a directional scoring contribution."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from schemas.tda import (
    Answer,
    ChoiceValue,
    FlagValue,
    Question,
    RatingValue,
    TextValue,
)
from trading_core.config import DEFAULT_SCORING_CONFIG, ScoringConfig


@dataclass(frozen=True)
class Contribution:
    """Signed signal produced by a single answer.

    ``direction`` is +1, 0 or -1. For directional signals the score moves by
    ``direction * magnitude``; a neutral signal applies its signed magnitude
    directly, which is how a sideways read nudges the score down.
    """

    direction: int
    magnitude: float
    reason: Optional[str] = None

    @property
    def score_delta(self) -> float:
        if self.direction:
            return self.direction * self.magnitude
        return self.magnitude


NEUTRAL = Contribution(0, 0.0)


class AnswerNormalizer:
    def __init__(self, config: ScoringConfig = DEFAULT_SCORING_CONFIG) -> None:
        self.config = config

    def normalize(self, answer: Answer, question: Question) -> Contribution:
        value = answer.value
        expected = question.answer_type
        if isinstance(value, ChoiceValue) and expected == "CHOICE":
            return self._choice(value, question)
        if isinstance(value, RatingValue) and expected == "RATING":
            return self._rating(value, question)
        if isinstance(value, FlagValue) and expected == "FLAG":
            return self._flag(value, question)
        if isinstance(value, TextValue) and expected == "TEXT":
            return self._text(value, question)
        return NEUTRAL

    def _choice(self, value: ChoiceValue, question: Question) -> Contribution:
        cfg = self.config
        label = value.option.strip().lower()
        if label in cfg.bullish_labels:
            return Contribution(1, cfg.choice_magnitude, f"Strong bullish signal from {question.text}")
        if label in cfg.bearish_labels:
            return Contribution(-1, cfg.choice_magnitude, f"Strong bearish signal from {question.text}")
        if label in cfg.neutral_labels:
            return Contribution(0, cfg.sideways_magnitude, f"Neutral/sideways signal from {question.text}")
        return NEUTRAL

    def _rating(self, value: RatingValue, question: Question) -> Contribution:
        cfg = self.config
        if not 1 <= value.level <= value.scale_max:
            return NEUTRAL
        scale = f"{value.level}/{value.scale_max}"
        if value.level >= value.scale_max * cfg.rating_high_fraction:
            return Contribution(1, cfg.rating_magnitude, f"High confidence ({scale}) in {question.text}")
        if value.level <= value.scale_max * cfg.rating_low_fraction:
            return Contribution(-1, cfg.rating_magnitude, f"Low confidence ({scale}) in {question.text}")
        return NEUTRAL

    def _flag(self, value: FlagValue, question: Question) -> Contribution:
        magnitude = self.config.flag_magnitude
        if value.flag:
            return Contribution(1, magnitude, f"Positive confirmation for {question.text}")
        return Contribution(-1, magnitude, f"Negative confirmation for {question.text}")

    def _text(self, value: TextValue, question: Question) -> Contribution:
        cfg = self.config
        text = value.text.lower()
        excerpt = text[: cfg.text_excerpt_chars]
        if any(keyword in text for keyword in cfg.bullish_keywords):
            return Contribution(1, cfg.text_magnitude, f"Positive text analysis: {excerpt}...")
        if any(keyword in text for keyword in cfg.bearish_keywords):
            return Contribution(-1, cfg.text_magnitude, f"Negative text analysis: {excerpt}...")
        return NEUTRAL


__all__ = ["Contribution", "NEUTRAL", "AnswerNormalizer"]
