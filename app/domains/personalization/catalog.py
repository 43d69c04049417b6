"""상품 카탈로그

카탈로그는 세션(프로세스)당 한 번 로드되며, 로드 시점에
이름/설명/태그의 키워드로 상품 특징을 추출합니다.
"""

import json
from pathlib import Path
from typing import Iterable, Optional, Protocol

from pydantic import TypeAdapter, ValidationError

from app.core.logging import get_logger
from app.domains.personalization.types import Product

logger = get_logger(__name__)

COLOR_WORDS = [
    "black",
    "white",
    "red",
    "blue",
    "green",
    "yellow",
    "pink",
    "purple",
    "brown",
    "gray",
    "navy",
    "beige",
]

STYLE_WORDS = [
    "casual",
    "formal",
    "elegant",
    "sporty",
    "vintage",
    "modern",
    "classic",
    "trendy",
]

# 순서대로 검사하여 처음 일치한 값을 사용
SEASON_WORDS: dict[str, list[str]] = {
    "winter": ["winter", "warm", "coat", "jacket", "sweater"],
    "summer": ["summer", "light", "shorts", "tank", "sandals"],
    "spring": ["spring", "light", "cardigan", "blazer"],
    "fall": ["fall", "autumn", "jacket", "boots"],
}

OCCASION_WORDS: dict[str, list[str]] = {
    "work": ["work", "office", "professional", "business"],
    "party": ["party", "evening", "cocktail", "formal"],
    "casual": ["casual", "everyday", "comfort"],
    "sport": ["sport", "gym", "athletic", "running"],
}

DEFAULT_STYLE = "casual"
DEFAULT_SEASON = "all-season"
DEFAULT_OCCASION = "general"

PRICE_TIERS = ("budget", "mid-range", "premium", "luxury")

_products_adapter = TypeAdapter(list[Product])


def price_tier(price: Optional[float]) -> Optional[str]:
    """가격대 구분 (budget / mid-range / premium / luxury)"""
    if price is None:
        return None
    if price < 1000:
        return "budget"
    if price < 5000:
        return "mid-range"
    if price < 15000:
        return "premium"
    return "luxury"


def _keyword_text(*parts: Optional[str], tags: Iterable[str] = ()) -> str:
    return " ".join([p for p in parts if p] + list(tags)).lower()


def extract_colors(name: str, description: str) -> list[str]:
    text = _keyword_text(name, description)
    return [color for color in COLOR_WORDS if color in text]


def extract_style(name: str, tags: Iterable[str]) -> str:
    text = _keyword_text(name, tags=tags)
    return next((s for s in STYLE_WORDS if s in text), DEFAULT_STYLE)


def extract_season(name: str, tags: Iterable[str]) -> str:
    text = _keyword_text(name, tags=tags)
    for season, words in SEASON_WORDS.items():
        if any(word in text for word in words):
            return season
    return DEFAULT_SEASON


def extract_occasion(name: str, tags: Iterable[str]) -> str:
    text = _keyword_text(name, tags=tags)
    for occasion, words in OCCASION_WORDS.items():
        if any(word in text for word in words):
            return occasion
    return DEFAULT_OCCASION


def enrich_product(product: Product) -> Product:
    """상품 특징 추출

    상품에 이미 값이 있는 필드는 유지하고, 비어 있는 필드만 채웁니다.
    """
    return product.model_copy(
        update={
            "style": product.style or extract_style(product.name, product.tags),
            "colors": product.colors
            or extract_colors(product.name, product.description),
            "season": product.season
            or extract_season(product.name, product.tags),
            "occasion": product.occasion
            or extract_occasion(product.name, product.tags),
            "price_tier": product.price_tier or price_tier(product.price),
        }
    )


def filter_products(
    products: Iterable[Product],
    category: Optional[str] = None,
    tier: Optional[str] = None,
    style: Optional[str] = None,
    occasion: Optional[str] = None,
) -> list[Product]:
    """추천 요청 필터 적용 (지정된 조건만 검사)"""
    return [
        p
        for p in products
        if (category is None or p.category == category)
        and (tier is None or p.price_tier == tier)
        and (style is None or p.style == style)
        and (occasion is None or p.occasion == occasion)
    ]


class ProductCatalog(Protocol):
    """상품 카탈로그 인터페이스

    상품 정보는 읽기 전용이며, 트렌딩 점수만 배치 재계산으로 교체됩니다.
    """

    def list(self) -> list[Product]: ...

    def get(self, product_id: str) -> Optional[Product]: ...

    def __len__(self) -> int: ...

    def update_trending(self, scores: dict[str, float]) -> None: ...


class InMemoryCatalog:
    """메모리 카탈로그

    트렌딩 점수는 배치 재계산 시 update_trending으로 교체됩니다.
    """

    def __init__(self, products: Iterable[Product] = ()):
        self._products: dict[str, Product] = {}
        for product in products:
            self._products.setdefault(product.id, enrich_product(product))

    def __len__(self) -> int:
        return len(self._products)

    def list(self) -> list[Product]:
        return list(self._products.values())

    def get(self, product_id: str) -> Optional[Product]:
        return self._products.get(product_id)

    def update_trending(self, scores: dict[str, float]) -> None:
        for product_id, score in scores.items():
            product = self._products.get(product_id)
            if product is not None:
                self._products[product_id] = product.model_copy(
                    update={"trending_score": score}
                )


def load_catalog(path: Optional[str]) -> InMemoryCatalog:
    """JSON 파일에서 카탈로그 로드

    Args:
        path: 상품 배열(JSON) 파일 경로. None이면 빈 카탈로그

    Returns:
        InMemoryCatalog

    Raises:
        FileNotFoundError: 파일이 없는 경우
        ValueError: JSON 형식이나 상품 스키마가 잘못된 경우
    """
    if not path:
        logger.info("No catalog path configured; starting with empty catalog")
        return InMemoryCatalog()

    raw = Path(path).read_text(encoding="utf-8")
    try:
        products = _products_adapter.validate_python(json.loads(raw))
    except (json.JSONDecodeError, ValidationError) as e:
        raise ValueError(f"Invalid product catalog '{path}': {e}") from e

    catalog = InMemoryCatalog(products)
    logger.info(f"Loaded {len(catalog)} products from {path}")
    return catalog
