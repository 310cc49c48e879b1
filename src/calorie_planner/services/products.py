"""Open Food Facts gateway for text and barcode search."""

import logging
import re
from dataclasses import dataclass, field

from calorie_planner.adapters.http_client import HttpClient, HttpResult
from calorie_planner.config import WORLD_OFF_BASE_URL, RegionProfile, region_profile
from calorie_planner.domain.errors import GatewayError, NotFoundError, UpstreamError
from calorie_planner.domain.nutrition import (
    BarcodeProduct,
    SearchResponse,
    SearchResultItem,
    Serving,
)
from calorie_planner.services.cache import Cache, search_cache_key
from calorie_planner.services.fallback import try_in_order
from calorie_planner.services.numbers import round_half_up, to_number

_logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 50

# Nutriment keys; the "_100g" variant is preferred over the bare one.
_NUTRIMENT_KEYS = {
    "kcal": "energy-kcal",
    "protein": "proteins",
    "fat": "fat",
    "carbs": "carbohydrates",
}

_SEARCH_IMAGE_KEYS = ("image_front_small_url", "image_front_url", "image_url")
_BARCODE_IMAGE_KEYS = ("image_front_url", "image_url", "image_front_small_url")

_SERVING_GRAMS = re.compile(r"(\d+)")


@dataclass
class OpenProductGateway:
    """Maps Open Food Facts search and product payloads to the API model."""

    http_client: HttpClient
    base_url: str
    region: str
    strict_country: bool = False
    user_agent: str = "CaloriePlanner/1.0"
    cache: Cache | None = None
    cache_ttl_seconds: int = 300
    fallback_base_url: str = WORLD_OFF_BASE_URL
    profile: RegionProfile | None = field(init=False, default=None)

    def __post_init__(self) -> None:
        self.profile = region_profile(self.region)

    @property
    def base_urls(self) -> list[str]:
        """Primary base URL followed by the global one when they differ."""
        urls = [self.base_url]
        if self.fallback_base_url not in urls:
            urls.append(self.fallback_base_url)
        return urls

    async def search_by_text(
        self, query: str, page: int = 1, page_size: int = DEFAULT_PAGE_SIZE
    ) -> SearchResponse:
        """Search products by free text, serving repeated searches from cache."""
        safe_page = page if page > 0 else 1
        safe_page_size = (
            min(page_size, MAX_PAGE_SIZE) if page_size > 0 else DEFAULT_PAGE_SIZE
        )

        cache_key = search_cache_key(
            query, safe_page, safe_page_size, self.region, self.base_url
        )
        if self.cache is not None:
            cached = self.cache.get(cache_key)
            if isinstance(cached, SearchResponse):
                _logger.info("Search cache hit: %s", query)
                return cached

        async def attempt(base_url: str) -> dict[str, object]:
            result = await self.http_client.request(
                "GET",
                f"{base_url}/cgi/search.pl",
                params=self._search_params(query, safe_page, safe_page_size),
                headers={"User-Agent": self.user_agent},
            )
            return _require_json(result)

        payload = await try_in_order(self.base_urls, attempt, _log_base_url_failure)
        products = payload.get("products") or []
        response = SearchResponse(
            items=[
                self._to_search_item(product)
                for product in products
                if isinstance(product, dict)
            ],
            count=int(to_number(payload.get("count"))),
            page=safe_page,
            pageSize=safe_page_size,
        )
        if self.cache is not None:
            self.cache.set(cache_key, response, ttl_seconds=self.cache_ttl_seconds)
        return response

    async def search_by_barcode(self, barcode: str) -> BarcodeProduct:
        """Look up a product by barcode with a 100g and a label serving."""

        async def attempt(base_url: str) -> dict[str, object]:
            params = {"lc": self.profile.language} if self.profile else None
            result = await self.http_client.request(
                "GET",
                f"{base_url}/api/v0/product/{barcode}.json",
                params=params,
                headers={"User-Agent": self.user_agent},
            )
            return _require_json(result)

        payload = await try_in_order(self.base_urls, attempt, _log_base_url_failure)
        product = payload.get("product")
        if payload.get("status") != 1 or not isinstance(product, dict):
            raise NotFoundError(f"Producto no encontrado para código: {barcode}")

        nutriments = product.get("nutriments") or {}
        per_100g = {
            name: round_half_up(_nutriment(nutriments, key))
            for name, key in _NUTRIMENT_KEYS.items()
        }
        servings = [
            Serving(
                serving_description="100g",
                calories=per_100g["kcal"],
                protein=per_100g["protein"],
                fat=per_100g["fat"],
                carbohydrate=per_100g["carbs"],
                metric_serving_amount=100,
                metric_serving_unit="g",
            )
        ]
        serving_size = product.get("serving_size")
        if serving_size:
            servings.append(_label_serving(str(serving_size), per_100g))

        return BarcodeProduct(
            food_id=barcode,
            name=self._product_name(product, barcode),
            brand=_brand(product),
            image_url=_first_image(product, _BARCODE_IMAGE_KEYS),
            servings=servings,
        )

    def _search_params(self, query: str, page: int, page_size: int) -> dict[str, str]:
        fields = ["code", "product_name"]
        if self.profile is not None:
            fields.append(f"product_name_{self.profile.language}")
        fields += ["brands", "brand_owner", *_SEARCH_IMAGE_KEYS, "nutriments"]
        params = {
            "search_terms": query,
            "search_simple": "1",
            "action": "process",
            "json": "1",
            "page": str(page),
            "page_size": str(page_size),
            "fields": ",".join(fields),
        }
        if self.profile is not None:
            params["lc"] = self.profile.language
            if self.strict_country:
                params["tagtype_0"] = "countries"
                params["tag_contains_0"] = "contains"
                params["tag_0"] = self.profile.country
        return params

    def _to_search_item(self, product: dict[str, object]) -> SearchResultItem:
        code = str(product.get("code") or "")
        nutriments = product.get("nutriments") or {}
        return SearchResultItem(
            id=code,
            name=self._product_name(product, code),
            brand=_brand(product),
            image_url=_first_image(product, _SEARCH_IMAGE_KEYS),
            kcal_100g=round_half_up(_nutriment(nutriments, "energy-kcal")),
            protein_100g=round_half_up(_nutriment(nutriments, "proteins")),
            fat_100g=round_half_up(_nutriment(nutriments, "fat")),
            carbs_100g=round_half_up(_nutriment(nutriments, "carbohydrates")),
        )

    def _product_name(self, product: dict[str, object], code: str) -> str:
        name = product.get("product_name")
        if not name and self.profile is not None:
            name = product.get(f"product_name_{self.profile.language}")
        return str(name or f"Producto {code}")


def _require_json(result: HttpResult) -> dict[str, object]:
    if not result.ok or not isinstance(result.json, dict):
        raise UpstreamError(
            f"Open Food Facts error: {result.text}",
            status_code=result.status_code,
            body=result.text,
        )
    return result.json


def _log_base_url_failure(base_url: str, exc: GatewayError) -> None:
    _logger.warning("Open Food Facts request to %s failed: %s", base_url, exc)


def _nutriment(nutriments: object, key: str) -> float:
    """Return the per-100g value, falling back to the bare key.

    The bare key is only per 100g when the product declares its nutrition
    that way; products with per-serving data will report serving values here.
    """
    if not isinstance(nutriments, dict):
        return 0.0
    return to_number(nutriments.get(f"{key}_100g")) or to_number(nutriments.get(key))


def _brand(product: dict[str, object]) -> str:
    return str(product.get("brands") or product.get("brand_owner") or "")


def _first_image(product: dict[str, object], keys: tuple[str, ...]) -> str:
    for key in keys:
        value = product.get(key)
        if value:
            return str(value)
    return ""


def _label_serving(serving_size: str, per_100g: dict[str, int]) -> Serving:
    """Scale the rounded per-100g values to the grams on the label."""
    match = _SERVING_GRAMS.search(serving_size)
    grams = int(match.group(1)) if match else 100
    ratio = grams / 100
    return Serving(
        serving_description=serving_size,
        calories=round_half_up(per_100g["kcal"] * ratio),
        protein=round_half_up(per_100g["protein"] * ratio),
        fat=round_half_up(per_100g["fat"] * ratio),
        carbohydrate=round_half_up(per_100g["carbs"] * ratio),
        metric_serving_amount=grams,
        metric_serving_unit="g",
    )
