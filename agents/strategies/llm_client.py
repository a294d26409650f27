"""LLM client facade for the remote top-down analysis."""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Optional, Protocol

import openai

from agents.llm.client_factory import get_llm_client
from agents.strategies.prompt_builder import SYSTEM_PROMPT, build_user_prompt
from app.core.config import Settings, get_settings
from app.core.errors import ExternalServiceError, MalformedResponseError
from app.core.logging import get_logger
from schemas.tda import AnalysisRequest

LOG = get_logger(__name__)

_FENCE = re.compile(r"^```(?:json)?\s*(?P<body>.*?)\s*```$", re.DOTALL)


class CompletionTransport(Protocol):
    def __call__(self, system_prompt: str, user_prompt: str) -> str: ...


def parse_json_object(text: str) -> Dict[str, Any]:
    """Parse the single JSON object returned by the model."""

    cleaned = text.strip()
    match = _FENCE.match(cleaned)
    if match:
        cleaned = match.group("body")
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        start, end = cleaned.find("{"), cleaned.rfind("}")
        if start == -1 or end <= start:
            raise MalformedResponseError("completion is not JSON", raw=text) from None
        try:
            data = json.loads(cleaned[start : end + 1])
        except json.JSONDecodeError as exc:
            raise MalformedResponseError(f"completion is not JSON: {exc}", raw=text) from exc
    if not isinstance(data, dict):
        raise MalformedResponseError("completion is not a JSON object", raw=text)
    return data


class AnalysisLLMClient:
    """Thin wrapper over OpenAI's Responses API.

    A ``transport`` can be injected in place of the OpenAI client; it receives
    the system and user prompts and returns the raw completion text.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: CompletionTransport | None = None,
        client: Any = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.transport = transport
        self._client = client

    @property
    def available(self) -> bool:
        return self.transport is not None or self._client is not None or self.settings.openai_api_key is not None

    @property
    def client(self):
        if self._client is None:
            self._client = get_llm_client(self.settings)
        return self._client

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        if self.transport is not None:
            return self.transport(system_prompt, user_prompt)
        client = self.client
        if client is None:
            raise ExternalServiceError("OPENAI_API_KEY not set; cannot call the analysis model")
        try:
            completion = client.responses.create(
                model=self.settings.openai_model,
                input=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=self.settings.llm_temperature,
                max_output_tokens=self.settings.llm_max_output_tokens,
            )
        except openai.APIStatusError as exc:
            raise ExternalServiceError(f"analysis model returned {exc.status_code}", exc.status_code) from exc
        except openai.APIError as exc:
            raise ExternalServiceError(f"analysis model unreachable: {exc}") from exc
        text = getattr(completion, "output_text", None)
        if not text:
            raise MalformedResponseError("analysis model returned an empty completion")
        return text

    def request_analysis(self, request: AnalysisRequest) -> Dict[str, Any]:
        """Send the analysis prompt and return the parsed JSON object."""

        LOG.info(
            "requesting remote analysis",
            pair=request.pair,
            timeframes=request.selected_timeframes,
            model=self.settings.openai_model,
        )
        raw = self.complete(SYSTEM_PROMPT, build_user_prompt(request))
        return parse_json_object(raw)


__all__ = ["CompletionTransport", "AnalysisLLMClient", "parse_json_object"]
