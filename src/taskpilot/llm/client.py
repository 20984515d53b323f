# src/taskpilot/llm/client.py

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any

import httpx
import openai
from openai import OpenAI

from ..core.errors import ConfigurationError, UpstreamFormatError, UpstreamUnavailableError
from ..core.ports import Candidate
from .prompts import build_system_prompt, build_user_message

logger = logging.getLogger(__name__)

_RAW_PREVIEW_CHARS = 500


def _is_connection_error(exc: Exception) -> bool:
    # APITimeoutError is a subclass of APIConnectionError.
    return isinstance(exc, openai.APIConnectionError)


def _is_status_error(exc: Exception) -> bool:
    return isinstance(exc, openai.APIStatusError)


def _status_diagnostic(exc: openai.APIStatusError) -> str:
    body = exc.body
    if isinstance(body, (dict, list)):
        detail = json.dumps(body, ensure_ascii=False)
    else:
        detail = str(body or exc.message or "")
    return f"HTTP {exc.status_code}: {detail}"[:2000]


def _make_timeout_obj(connect_s: float, read_s: float) -> httpx.Timeout:
    return httpx.Timeout(
        connect=connect_s,
        read=read_s,
        write=10.0,
        pool=connect_s,
    )


def parse_candidate(raw: str | None) -> Candidate:
    """
    Strict parse of the model output: it must be exactly one JSON object.

    Anything else (empty, prose, JSON array, truncated JSON) is an
    UpstreamFormatError.
    """
    text = (raw or "").strip()
    if not text:
        raise UpstreamFormatError("Extraction returned no content.", raw=raw)

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise UpstreamFormatError(
            f"Extraction returned invalid JSON: {e.msg}",
            raw=text[:_RAW_PREVIEW_CHARS],
        ) from e

    if not isinstance(data, dict):
        raise UpstreamFormatError(
            f"Extraction returned {type(data).__name__}, expected a JSON object.",
            raw=text[:_RAW_PREVIEW_CHARS],
        )
    return data


class OpenAIExtractionClient:
    """
    Extraction capability backed by an OpenAI-compatible chat completion API.

    - One model, no retries: a failed call is reported, the caller may resubmit.
    - JSON mode (response_format=json_object) + strict parsing.
    - Bounded by an httpx.Timeout; a timeout is an UpstreamUnavailableError.
    """

    def __init__(self, settings: Any, *, client: Any | None = None) -> None:
        self._model = str(getattr(settings, "extraction_model", "") or "").strip()
        self._temperature = float(getattr(settings, "extraction_temperature", 0.1))
        if not self._model:
            raise ConfigurationError("Extraction model is not set. Set TASKPILOT_EXTRACTION_MODEL.")

        self._timeout = _make_timeout_obj(
            connect_s=float(getattr(settings, "llm_connect_timeout", 5.0)),
            read_s=float(getattr(settings, "llm_read_timeout", 30.0)),
        )

        if client is not None:
            self._client = client
            return

        api_key = getattr(settings, "openai_api_key", None)
        base_url = str(getattr(settings, "openai_base_url", "") or "")
        if not api_key or not str(api_key).strip():
            raise ConfigurationError("Extraction API key is not set. Set TASKPILOT_OPENAI_API_KEY in your .env.")
        if not base_url.strip():
            raise ConfigurationError("Extraction base URL is not set. Set TASKPILOT_OPENAI_BASE_URL.")

        self._client = OpenAI(
            base_url=base_url,
            api_key=str(api_key),
            timeout=self._timeout,
            max_retries=0,
        )

    @property
    def model(self) -> str:
        return self._model

    def extract(self, text: str, reference: datetime) -> Candidate:
        messages = [
            {"role": "system", "content": build_system_prompt(reference)},
            {"role": "user", "content": build_user_message(text)},
        ]

        logger.info("Extraction: model=%s chars=%d", self._model, len(text))
        try:
            resp = self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                response_format={"type": "json_object"},
                temperature=self._temperature,
                timeout=self._timeout,
            )
        except Exception as e:
            if _is_connection_error(e):
                logger.warning("Extraction: network/timeout error on model=%s: %s", self._model, e)
                raise UpstreamUnavailableError(
                    "Extraction service is unreachable or timed out.",
                    diagnostic=str(e),
                ) from e
            if _is_status_error(e):
                diagnostic = _status_diagnostic(e)
                logger.warning("Extraction: upstream error on model=%s: %s", self._model, diagnostic)
                raise UpstreamUnavailableError(
                    f"Extraction service returned HTTP {e.status_code}.",
                    diagnostic=diagnostic,
                ) from e
            if isinstance(e, openai.OpenAIError):
                logger.warning("Extraction: client error on model=%s: %s", self._model, e)
                raise UpstreamUnavailableError("Extraction service call failed.", diagnostic=str(e)) from e
            raise

        try:
            content = resp.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as e:
            raise UpstreamFormatError("Extraction response has no message content.") from e

        candidate = parse_candidate(content)
        logger.debug("Extraction candidate=%s", json.dumps(candidate, ensure_ascii=False)[:2000])
        return candidate
