"""Nutrition gateway backed by the FatSecret platform API."""

import logging
from dataclasses import dataclass

from calorie_planner.adapters.http_client import HttpClient
from calorie_planner.domain.errors import UpstreamError
from calorie_planner.domain.nutrition import FoodDetails, Serving
from calorie_planner.services.numbers import to_number
from calorie_planner.services.tokens import TokenManager

_logger = logging.getLogger(__name__)


@dataclass
class NutritionGateway:
    """Looks up food details with a bearer token from the token manager."""

    http_client: HttpClient
    token_manager: TokenManager
    api_url: str

    async def lookup_details(self, food_id: str) -> FoodDetails:
        """Fetch a food by id and normalize its servings."""
        token = await self.token_manager.get_token()
        result = await self.http_client.request(
            "GET",
            self.api_url,
            params={"method": "food.get", "food_id": food_id, "format": "json"},
            headers={"Authorization": f"Bearer {token}"},
        )
        if not result.ok or not isinstance(result.json, dict):
            raise UpstreamError(
                f"FatSecret details error: {result.text}",
                status_code=result.status_code,
                body=result.text,
            )

        food = result.json.get("food")
        if not isinstance(food, dict):
            food = {}
        servings = food.get("servings")
        entries = servings.get("serving") if isinstance(servings, dict) else None
        _logger.info("FatSecret food %s returned", food_id)
        return FoodDetails(
            name=str(food.get("food_name") or ""),
            brand=str(food.get("brand_name") or ""),
            servings=[
                _to_serving(entry)
                for entry in _as_list(entries)
                if isinstance(entry, dict) and entry
            ],
        )


def _as_list(value: object) -> list:
    """FatSecret returns a bare object when a food has a single serving."""
    if isinstance(value, list):
        return value
    return [value]


def _to_serving(entry: dict[str, object]) -> Serving:
    return Serving(
        serving_description=str(entry.get("serving_description") or ""),
        calories=to_number(entry.get("calories")),
        protein=to_number(entry.get("protein")),
        fat=to_number(entry.get("fat")),
        carbohydrate=to_number(entry.get("carbohydrate")),
        metric_serving_amount=to_number(entry.get("metric_serving_amount")),
        metric_serving_unit=str(entry.get("metric_serving_unit") or ""),
    )
