"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from calorie_planner.adapters.http_client import HttpxHttpClient
from calorie_planner.config import Settings, parse_csv_list, resolve_off_base_url
from calorie_planner.services.cache import Cache, InMemoryCache
from calorie_planner.services.generation import GenerativeGateway
from calorie_planner.services.nutrition import NutritionGateway
from calorie_planner.services.products import OpenProductGateway
from calorie_planner.services.tokens import TokenManager, TokenState


@dataclass
class AppContainer:
    """Holds application-wide dependencies and the mutable caches they share."""

    settings: Settings
    token_manager: TokenManager
    search_cache: Cache
    nutrition_gateway: NutritionGateway
    product_gateway: OpenProductGateway
    generative_gateway: GenerativeGateway | None
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    http_client = HttpxHttpClient.create()
    token_manager = TokenManager(
        http_client=http_client,
        client_id=resolved_settings.fatsecret_client_id,
        client_secret=resolved_settings.fatsecret_client_secret,
        token_url=resolved_settings.fatsecret_token_url,
        state=TokenState(),
    )
    search_cache = InMemoryCache()
    nutrition_gateway = NutritionGateway(
        http_client=http_client,
        token_manager=token_manager,
        api_url=resolved_settings.fatsecret_api_url,
    )
    product_gateway = OpenProductGateway(
        http_client=http_client,
        base_url=resolve_off_base_url(resolved_settings),
        region=resolved_settings.fatsecret_region,
        strict_country=resolved_settings.off_strict_country,
        user_agent=resolved_settings.off_user_agent,
        cache=search_cache,
        cache_ttl_seconds=resolved_settings.search_cache_ttl_seconds,
    )
    generative_gateway = None
    if resolved_settings.gemini_api_key:
        generative_gateway = GenerativeGateway(
            http_client=http_client,
            api_key=resolved_settings.gemini_api_key,
            models=parse_csv_list(resolved_settings.gemini_models),
            api_versions=parse_csv_list(resolved_settings.gemini_api_versions),
            base_url=resolved_settings.gemini_base_url,
        )

    async def close_resources() -> None:
        await http_client.close()

    return AppContainer(
        settings=resolved_settings,
        token_manager=token_manager,
        search_cache=search_cache,
        nutrition_gateway=nutrition_gateway,
        product_gateway=product_gateway,
        generative_gateway=generative_gateway,
        close_resources=close_resources,
    )
