# -*- coding: utf-8 -*-
"""Meals — vision model call via an OpenAI-compatible chat completions API."""

from __future__ import annotations

import ast
import base64
import json
import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Protocol

import httpx

from ..config import Settings
from ..errors import AnalysisFailed

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a nutrition expert. Analyze the food in the image and provide nutritional information. "
    "Return STRICT JSON only, no markdown, no code fences. "
    "Respond with exactly four numeric fields in this format: "
    '{"calories": number, "protein": number, "carbs": number, "fat": number}. '
    "calories is kcal for the whole portion shown; protein, carbs and fat are grams."
)
USER_PROMPT = "Analyze this meal and provide nutritional information."

NUTRITION_FIELDS = ("calories", "protein", "carbs", "fat")

_KEY_MAP = {
    "calories": "calories",
    "calorie": "calories",
    "calories_kcal": "calories",
    "kcal": "calories",
    "energy": "calories",
    "energy_kcal": "calories",
    "protein": "protein",
    "protein_g": "protein",
    "proteins": "protein",
    "carbs": "carbs",
    "carbs_g": "carbs",
    "carb": "carbs",
    "carbohydrates": "carbs",
    "fat": "fat",
    "fat_g": "fat",
    "fats": "fat",
}


@dataclass(frozen=True)
class NutritionEstimate:
    """Raw four-field estimate, before rounding and bounds checks."""

    calories: float
    protein: float
    carbs: float
    fat: float


class VisionAnalyzer(Protocol):
    async def analyze(self, image_bytes: bytes, mime: str) -> NutritionEstimate:
        ...


_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")
_NON_FINITE_RE = re.compile(r"-?\b(?:NaN|Infinity)\b", re.IGNORECASE)
_PY_LITERALS = (
    (re.compile(r"\bnull\b", re.IGNORECASE), "None"),
    (re.compile(r"\btrue\b", re.IGNORECASE), "True"),
    (re.compile(r"\bfalse\b", re.IGNORECASE), "False"),
)


def _object_spans(text: str) -> Iterator[str]:
    """Yield each top-level ``{...}`` block, ignoring braces inside double-quoted strings."""
    depth = 0
    start = 0
    in_str = False
    escaped = False
    for i, ch in enumerate(text):
        if in_str:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_str = False
        elif ch == '"':
            in_str = True
        elif ch == "{":
            if depth == 0:
                start = i
            depth += 1
        elif ch == "}" and depth:
            depth -= 1
            if depth == 0:
                yield text[start : i + 1]


def _tidy(candidate: str) -> str:
    # Also rewrites inside string values; only numeric fields are read.
    cleaned = candidate.replace("“", '"').replace("”", '"')
    cleaned = _TRAILING_COMMA_RE.sub(r"\1", cleaned)
    return _NON_FINITE_RE.sub("null", cleaned)


def parse_model_output_json(content: str) -> Dict[str, Any]:
    """Return the first dict found in the model reply.

    Tries strict JSON, then a tidied copy, then a Python-literal reading.
    """
    last_error: Optional[Exception] = None
    for candidate in _object_spans(content):
        tidied = _tidy(candidate)
        for attempt in (candidate, tidied):
            try:
                parsed = json.loads(attempt)
            except ValueError as exc:
                last_error = exc
                continue
            if isinstance(parsed, dict):
                return parsed

        literal = tidied
        for pattern, replacement in _PY_LITERALS:
            literal = pattern.sub(replacement, literal)
        try:
            parsed = ast.literal_eval(literal)
        except (ValueError, SyntaxError, TypeError) as exc:
            last_error = exc
            continue
        if isinstance(parsed, dict):
            return parsed

    if last_error is None:
        raise ValueError("Model output does not contain a JSON object")
    raise ValueError(f"Failed to parse model JSON: {last_error}") from last_error


def _coerce_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def extract_estimate(parsed: Dict[str, Any]) -> NutritionEstimate:
    """Map a parsed model payload onto the four nutrition fields.

    Raises ``ValueError`` naming the first missing or non-numeric field.
    """
    source = parsed
    if not any(isinstance(k, str) and k.lower() in _KEY_MAP for k in parsed):
        nested = parsed.get("totals") or parsed.get("total") or parsed.get("nutrition")
        if isinstance(nested, dict):
            source = nested

    values: Dict[str, Any] = {}
    for key, raw in source.items():
        if not isinstance(key, str):
            continue
        name = _KEY_MAP.get(key.strip().lower())
        if name and name not in values:
            values[name] = raw

    out: Dict[str, float] = {}
    for name in NUTRITION_FIELDS:
        if name not in values:
            raise ValueError(f"missing field '{name}'")
        number = _coerce_number(values[name])
        if number is None:
            raise ValueError(f"non-numeric value for '{name}': {values[name]!r}")
        out[name] = number
    return NutritionEstimate(**out)


def _extract_text_from_completion(data: object) -> str:
    if not isinstance(data, dict):
        return ""
    choices = data.get("choices")
    if not isinstance(choices, list):
        return ""
    out: List[str] = []
    for choice in choices:
        if not isinstance(choice, dict):
            continue
        msg = choice.get("message")
        if isinstance(msg, dict):
            maybe = msg.get("content")
            if isinstance(maybe, str) and maybe:
                out.append(maybe)
        maybe_text = choice.get("text")
        if isinstance(maybe_text, str) and maybe_text:
            out.append(maybe_text)
    return "".join(out)


def _extract_error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        snippet = (resp.text or "").replace("\n", " ").strip()[:200]
        return f"HTTP {resp.status_code}: {snippet}" if snippet else f"HTTP {resp.status_code}"
    if isinstance(body, dict):
        err = body.get("error")
        if isinstance(err, dict) and isinstance(err.get("message"), str):
            return f"HTTP {resp.status_code}: {err['message']}"
        for key in ("message", "detail"):
            if isinstance(body.get(key), str):
                return f"HTTP {resp.status_code}: {body[key]}"
    return f"HTTP {resp.status_code}"


def _data_url(mime: str, image_bytes: bytes) -> str:
    b64 = base64.b64encode(image_bytes).decode("ascii")
    return f"data:{mime};base64,{b64}"


class OpenAIVisionClient:
    """Single-shot nutrition estimation. No retries: every failure is terminal."""

    def __init__(
        self,
        *,
        base_url: str,
        api_key: Optional[str],
        model: str,
        timeout: float,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenAIVisionClient":
        return cls(
            base_url=settings.vision_base_url,
            api_key=settings.vision_api_key,
            model=settings.vision_model,
            timeout=settings.vision_timeout,
        )

    def build_payload(self, image_bytes: bytes, mime: str) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": USER_PROMPT},
                        {"type": "image_url", "image_url": {"url": _data_url(mime, image_bytes)}},
                    ],
                },
            ],
            "response_format": {"type": "json_object"},
        }

    async def analyze(self, image_bytes: bytes, mime: str) -> NutritionEstimate:
        if not self.api_key:
            raise AnalysisFailed("vision service is not configured (missing API key)")

        url = f"{self.base_url}/chat/completions"
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}
        payload = self.build_payload(image_bytes, mime)

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(url, headers=headers, json=payload)
        except httpx.TimeoutException as exc:
            logger.warning("vision call timed out after %.1fs", self.timeout)
            raise AnalysisFailed("vision service timed out") from exc
        except httpx.HTTPError as exc:
            logger.warning("vision call failed: %s", exc)
            raise AnalysisFailed(f"vision request failed: {exc}") from exc

        if resp.status_code >= 400:
            message = _extract_error_message(resp)
            logger.warning("vision call rejected: %s", message)
            raise AnalysisFailed(f"vision service error ({message})")

        try:
            data = resp.json()
        except ValueError as exc:
            raise AnalysisFailed("vision service returned a non-JSON response") from exc

        content = _extract_text_from_completion(data)
        if not content.strip():
            raise AnalysisFailed("vision service returned no content")

        try:
            estimate = extract_estimate(parse_model_output_json(content))
        except ValueError as exc:
            logger.warning("vision output parse failed: %s", exc)
            raise AnalysisFailed(str(exc), details={"raw_text": content[:800]}) from exc

        logger.debug("vision estimate: %s", estimate)
        return estimate
