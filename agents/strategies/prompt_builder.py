"""Prompt assembly for the remote top-down analysis call."""

from __future__ import annotations

import json
from typing import Any, Dict, List

from schemas.tda import (
    AnalysisRequest,
    Answer,
    ChoiceValue,
    FlagValue,
    RatingValue,
    TextValue,
)

SYSTEM_PROMPT = "You are a helpful forex trading analyst. Respond only with valid JSON."

_BREAKDOWN_ENTRY = '{"probability": number, "sentiment": "BULLISH"|"BEARISH"|"NEUTRAL", "strength": number, "reasoning": "string"}'


def display_value(answer: Answer) -> Any:
    value = answer.value
    if isinstance(value, ChoiceValue):
        return value.option
    if isinstance(value, RatingValue):
        return f"{value.level}/{value.scale_max}"
    if isinstance(value, FlagValue):
        return "yes" if value.flag else "no"
    if isinstance(value, TextValue):
        return value.text
    return value.raw


def build_analysis_data(request: AnalysisRequest) -> Dict[str, Any]:
    """Data summary embedded in the prompt, restricted to the selected timeframes."""

    questions = request.questions_by_id()
    selected = set(request.selected_timeframes)
    answers: List[Dict[str, Any]] = []
    for answer in request.answers:
        question = questions.get(answer.question_id)
        if question is None or question.timeframe not in selected:
            continue
        answers.append(
            {
                "question": question.text,
                "answer": display_value(answer),
                "timeframe": question.timeframe,
            }
        )
    data: Dict[str, Any] = {
        "currencyPair": request.pair,
        "selectedTimeframes": request.selected_timeframes,
        "answers": answers,
    }
    notes = [
        {"timeframe": timeframe, "analysis": request.timeframe_notes[timeframe]}
        for timeframe in request.selected_timeframes
        if timeframe in request.timeframe_notes
    ]
    if notes:
        data["timeframeAnalyses"] = notes
    snapshot = request.market_snapshot
    if snapshot is not None and not snapshot.is_empty:
        data["marketData"] = snapshot.model_dump(exclude_none=True)
    return data


def build_response_schema(selected: List[str]) -> str:
    breakdown = ",\n".join(f'    "{timeframe}": {_BREAKDOWN_ENTRY}' for timeframe in selected)
    return (
        "{\n"
        '  "overall_probability": number (0-100),\n'
        '  "trade_recommendation": "LONG" | "SHORT" | "NEUTRAL" | "AVOID",\n'
        '  "confidence_level": number (0-100),\n'
        '  "risk_level": "LOW" | "MEDIUM" | "HIGH",\n'
        '  "ai_summary": "concise summary of the analysis",\n'
        '  "ai_reasoning": "detailed reasoning for the recommendation",\n'
        '  "entry_strategy": "where and how to enter",\n'
        '  "exit_strategy": "profit target and invalidation",\n'
        '  "position_sizing": "how much to risk",\n'
        '  "market_sentiment": "overall market sentiment summary",\n'
        '  "technical_indicators": "technical indicator summary",\n'
        '  "timeframe_breakdown": {\n'
        f"{breakdown}\n"
        "  }\n"
        "}"
    )


def build_user_prompt(request: AnalysisRequest) -> str:
    data = json.dumps(build_analysis_data(request), indent=2)
    schema = build_response_schema(request.selected_timeframes)
    timeframes = ", ".join(request.selected_timeframes) or "none"
    return (
        f"You are a professional forex trading analyst performing a top-down analysis for {request.pair}.\n\n"
        f"Analysis Data:\n{data}\n\n"
        "Please provide a JSON response with the following structure:\n"
        f"{schema}\n\n"
        f"timeframe_breakdown must contain exactly these timeframes and no others: {timeframes}.\n\n"
        "Analyze the data considering:\n"
        "- Technical analysis across timeframes\n"
        "- Market sentiment and momentum\n"
        "- Risk-reward ratios\n"
        "- Market conditions and volatility\n"
        "- Support and resistance levels\n\n"
        "Respond only with valid JSON."
    )


__all__ = [
    "SYSTEM_PROMPT",
    "display_value",
    "build_analysis_data",
    "build_response_schema",
    "build_user_prompt",
]
