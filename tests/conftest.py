"""Shared test fixtures."""

import json
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from calorie_planner.adapters.http_client import HttpClient, HttpResult
from calorie_planner.config import Settings, resolve_off_base_url
from calorie_planner.containers import AppContainer
from calorie_planner.services.cache import InMemoryCache
from calorie_planner.services.generation import GenerativeGateway
from calorie_planner.services.nutrition import NutritionGateway
from calorie_planner.services.products import OpenProductGateway
from calorie_planner.services.tokens import TokenManager, TokenState


def json_result(payload: object, status_code: int = 200) -> HttpResult:
    """Build a provider response carrying a JSON body."""
    return HttpResult(status_code=status_code, text=json.dumps(payload), json=payload)


def text_result(text: str, status_code: int = 200) -> HttpResult:
    """Build a provider response carrying a non-JSON body."""
    return HttpResult(status_code=status_code, text=text, json=None)


@dataclass
class RecordedRequest:
    """A request seen by a fake HTTP client."""

    method: str
    url: str
    params: dict[str, str]
    headers: dict[str, str]
    data: dict[str, str] | None
    json_body: object | None
    auth: tuple[str, str] | None


@dataclass
class FakeHttpClient(HttpClient):
    """HTTP client answering every request through a handler function."""

    handler: Callable[[RecordedRequest], HttpResult]
    requests: list[RecordedRequest] = field(default_factory=list)

    async def request(  # noqa: PLR0913
        self,
        method: str,
        url: str,
        *,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
        data: dict[str, str] | None = None,
        json_body: object | None = None,
        auth: tuple[str, str] | None = None,
    ) -> HttpResult:
        recorded = RecordedRequest(
            method=method,
            url=url,
            params=dict(params or {}),
            headers=dict(headers or {}),
            data=data,
            json_body=json_body,
            auth=auth,
        )
        self.requests.append(recorded)
        return self.handler(recorded)


@dataclass
class FakeClock:
    """Manually advanced clock for expiry tests."""

    now: datetime = field(
        default_factory=lambda: datetime(2024, 5, 1, 12, 0, tzinfo=UTC)
    )

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def off_product(code: str, **overrides: object) -> dict[str, object]:
    """Return an Open Food Facts product entry."""
    product: dict[str, object] = {
        "code": code,
        "product_name": f"Leche {code}",
        "brands": "Hacendado",
        "image_front_small_url": f"https://images.test/{code}/front_small.jpg",
        "image_front_url": f"https://images.test/{code}/front.jpg",
        "image_url": f"https://images.test/{code}/main.jpg",
        "nutriments": {
            "energy-kcal_100g": 46.5,
            "proteins_100g": 3.1,
            "fat_100g": 1.55,
            "carbohydrates_100g": 4.7,
        },
    }
    product.update(overrides)
    return product


@dataclass
class FakeProviderClient(HttpClient):
    """Fake HTTP client serving canned FatSecret, Open Food Facts and Gemini data."""

    settings: Settings
    token_payload: dict[str, object] = field(
        default_factory=lambda: {"access_token": "token-1", "expires_in": 86400}
    )
    food_payload: dict[str, object] = field(
        default_factory=lambda: {
            "food": {
                "food_id": "33691",
                "food_name": "Milk",
                "brand_name": "Pascual",
                "servings": {
                    "serving": {
                        "serving_description": "1 cup",
                        "calories": "122",
                        "protein": "8.05",
                        "fat": "4.81",
                        "carbohydrate": "11.71",
                        "metric_serving_amount": "244.000",
                        "metric_serving_unit": "g",
                    }
                },
            }
        }
    )
    search_payload: dict[str, object] = field(
        default_factory=lambda: {
            "count": 2,
            "products": [off_product("8480000100011"), off_product("8480000100028")],
        }
    )
    product_payload: dict[str, object] = field(
        default_factory=lambda: {
            "status": 1,
            "product": off_product("8410000000017", serving_size="250 ml"),
        }
    )
    gemini_text: str = (
        '```json\n{"kcal": 42, "protein_g": 3.4, "fat_g": 1, "carbs_g": 5}\n```'
    )
    requests: list[RecordedRequest] = field(default_factory=list)

    async def request(  # noqa: PLR0913
        self,
        method: str,
        url: str,
        *,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
        data: dict[str, str] | None = None,
        json_body: object | None = None,
        auth: tuple[str, str] | None = None,
    ) -> HttpResult:
        self.requests.append(
            RecordedRequest(
                method=method,
                url=url,
                params=dict(params or {}),
                headers=dict(headers or {}),
                data=data,
                json_body=json_body,
                auth=auth,
            )
        )
        if url == self.settings.fatsecret_token_url:
            return json_result(self.token_payload)
        if url == self.settings.fatsecret_api_url:
            return json_result(self.food_payload)
        if url.endswith("/cgi/search.pl"):
            return json_result(self.search_payload)
        if "/api/v0/product/" in url:
            return json_result(self.product_payload)
        if url.endswith(":generateContent"):
            return json_result(
                {"candidates": [{"content": {"parts": [{"text": self.gemini_text}]}}]}
            )
        return text_result("not found", status_code=404)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,
        fatsecret_client_id="client-id",
        fatsecret_client_secret="client-secret",
        fatsecret_region="ES",
        gemini_api_key="gemini-key",
        gemini_models="model-a,model-b",
        gemini_api_versions="v1,v1beta",
        static_dir=str(tmp_path),
    )


@pytest.fixture
def provider_client(settings: Settings) -> FakeProviderClient:
    return FakeProviderClient(settings=settings)


@pytest.fixture
def container(settings: Settings, provider_client: FakeProviderClient) -> AppContainer:
    token_manager = TokenManager(
        http_client=provider_client,
        client_id=settings.fatsecret_client_id,
        client_secret=settings.fatsecret_client_secret,
        token_url=settings.fatsecret_token_url,
        state=TokenState(),
    )
    search_cache = InMemoryCache()
    nutrition_gateway = NutritionGateway(
        http_client=provider_client,
        token_manager=token_manager,
        api_url=settings.fatsecret_api_url,
    )
    product_gateway = OpenProductGateway(
        http_client=provider_client,
        base_url=resolve_off_base_url(settings),
        region=settings.fatsecret_region,
        cache=search_cache,
    )
    generative_gateway = GenerativeGateway(
        http_client=provider_client,
        api_key="gemini-key",
        models=["model-a", "model-b"],
        api_versions=["v1", "v1beta"],
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        token_manager=token_manager,
        search_cache=search_cache,
        nutrition_gateway=nutrition_gateway,
        product_gateway=product_gateway,
        generative_gateway=generative_gateway,
        close_resources=close_resources,
    )
