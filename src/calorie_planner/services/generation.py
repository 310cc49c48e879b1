"""Generative-AI gateway for nutrition estimates and label reading."""

import json
import logging
import re
from dataclasses import dataclass

from calorie_planner.adapters.http_client import HttpClient
from calorie_planner.domain.errors import GatewayError, GenerationError, UpstreamError
from calorie_planner.services.fallback import try_in_order

_logger = logging.getLogger(__name__)

_SUGGEST_PROMPT = (
    'Para el alimento "{food_name}", devuelve SOLO JSON válido con claves: '
    "kcal, protein_g, fat_g, carbs_g, per_amount, per_unit. Usa valores por "
    '100g o 100ml (per_amount=100, per_unit="g" o "ml"). '
    "Si no estás seguro, usa null."
)

_LABEL_PROMPT = (
    "Extrae los valores nutricionales por 100g o 100ml. Responde SOLO con JSON "
    "válido con claves: kcal, protein_g, fat_g, carbs_g, per_amount, per_unit. "
    "Si no encuentras un valor, usa null."
)

_FENCE_OPEN = re.compile(r"^```[a-zA-Z]*\n?")
_BACKTICK_JSON_OPEN = re.compile(r"^`json\n?")
_FENCE_CLOSE = re.compile(r"```$")
_BRACED = re.compile(r"\{.*\}", re.DOTALL)


@dataclass
class GenerativeGateway:
    """Calls Gemini generateContent across model and API version candidates."""

    http_client: HttpClient
    api_key: str
    models: list[str]
    api_versions: list[str]
    base_url: str = "https://generativelanguage.googleapis.com"

    @property
    def candidates(self) -> list[tuple[str, str]]:
        """Model/version pairs in the order they are tried."""
        return [
            (model, version) for model in self.models for version in self.api_versions
        ]

    async def complete(self, payload: dict[str, object]) -> str:
        """Return the first text part from the first model that answers."""

        async def attempt(candidate: tuple[str, str]) -> object:
            model, version = candidate
            result = await self.http_client.request(
                "POST",
                f"{self.base_url}/{version}/models/{model}:generateContent",
                params={"key": self.api_key},
                headers={"Content-Type": "application/json"},
                json_body=payload,
            )
            if not result.ok:
                raise UpstreamError(
                    result.text or f"Gemini error {result.status_code}",
                    status_code=result.status_code,
                    body=result.text,
                )
            return result.json

        try:
            response = await try_in_order(self.candidates, attempt, _log_failure)
        except GatewayError as exc:
            raise GenerationError(str(exc) or "Gemini error") from exc
        return _first_text(response)

    async def suggest_nutrition(self, food_name: str) -> dict[str, object]:
        """Ask the model for per-100g macros of a named food."""
        payload = {
            "contents": [
                {
                    "role": "user",
                    "parts": [{"text": _SUGGEST_PROMPT.format(food_name=food_name)}],
                }
            ]
        }
        data = await self._complete_json(payload)
        if not data.get("per_amount"):
            data["per_amount"] = 100
        if not data.get("per_unit"):
            data["per_unit"] = "g"
        return data

    async def extract_from_label_image(
        self, image_base64: str, mime_type: str = "image/jpeg"
    ) -> dict[str, object]:
        """Read macros off a nutrition label photo; missing values stay null."""
        payload = {
            "contents": [
                {
                    "role": "user",
                    "parts": [
                        {"text": _LABEL_PROMPT},
                        {"inline_data": {"mime_type": mime_type, "data": image_base64}},
                    ],
                }
            ]
        }
        return await self._complete_json(payload)

    async def _complete_json(self, payload: dict[str, object]) -> dict[str, object]:
        text = await self.complete(payload)
        data = parse_model_json(text)
        if data is None:
            raise GenerationError("No JSON from Gemini", raw=text)
        return data


def _log_failure(candidate: tuple[str, str], exc: GatewayError) -> None:
    model, version = candidate
    status_code = getattr(exc, "status_code", None)
    _logger.warning(
        "Gemini %s (%s) failed (status=%s): %s", model, version, status_code, exc
    )


def _first_text(response: object) -> str:
    """Dig candidates[0].content.parts[0].text out of a Gemini response."""
    try:
        text = response["candidates"][0]["content"]["parts"][0]["text"]  # type: ignore[index]
    except (KeyError, IndexError, TypeError):
        return ""
    return text if isinstance(text, str) else ""


def parse_model_json(text: str | None) -> dict[str, object] | None:
    """Extract a JSON object from model output.

    Code fences (with or without a language tag, or the single-backtick
    "`json" variant) are stripped first. If the cleaned text still does not
    parse, the span from the first "{" to the last "}" is tried.
    """
    if not text:
        return None
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = _FENCE_CLOSE.sub("", _FENCE_OPEN.sub("", cleaned)).strip()
    if cleaned.startswith("`json"):
        cleaned = _FENCE_CLOSE.sub("", _BACKTICK_JSON_OPEN.sub("", cleaned)).strip()

    parsed = _loads(cleaned)
    if isinstance(parsed, dict):
        return parsed
    match = _BRACED.search(text)
    if match is None:
        return None
    parsed = _loads(match.group(0))
    return parsed if isinstance(parsed, dict) else None


def _loads(text: str) -> object | None:
    try:
        return json.loads(text)
    except ValueError:
        return None
