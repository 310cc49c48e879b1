"""Normalized food data returned by the API."""

from dataclasses import dataclass


@dataclass(frozen=True)
class SearchResultItem:
    """A product from a text search, with per-100g macros."""

    id: str
    name: str
    brand: str
    image_url: str
    kcal_100g: int
    protein_100g: int
    fat_100g: int
    carbs_100g: int


@dataclass(frozen=True)
class SearchResponse:
    """One page of text search results."""

    items: list[SearchResultItem]
    count: int
    page: int
    pageSize: int  # noqa: N815


@dataclass(frozen=True)
class Serving:
    """A serving with its macros."""

    serving_description: str
    calories: float
    protein: float
    fat: float
    carbohydrate: float
    metric_serving_amount: float
    metric_serving_unit: str


@dataclass(frozen=True)
class FoodDetails:
    """Food details from the nutrition provider."""

    name: str
    brand: str
    servings: list[Serving]


@dataclass(frozen=True)
class BarcodeProduct:
    """A product found by barcode, with a 100g serving and optionally its label serving."""

    food_id: str
    name: str
    brand: str
    image_url: str
    servings: list[Serving]
