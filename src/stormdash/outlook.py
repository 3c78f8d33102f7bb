"""SPC convective outlook image selection."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum


class OutlookDay(str, Enum):
    DAY1 = "1"
    DAY2 = "2"
    DAY3 = "3"
    DAY4_8 = "4-8"


class ProductType(str, Enum):
    CATEGORICAL = "categorical"
    TORNADO = "tornado"
    WIND = "wind"
    HAIL = "hail"


@dataclass(frozen=True, slots=True)
class OutlookSelection:
    day: OutlookDay
    product_type: ProductType


_PROBABILISTIC_SUFFIX = {
    ProductType.TORNADO: "torn",
    ProductType.WIND: "wind",
    ProductType.HAIL: "hail",
}

# paths relative to the SPC site root
_IMAGE_PATHS: dict[tuple[OutlookDay, ProductType], str] = {
    (OutlookDay.DAY3, ProductType.CATEGORICAL): "products/outlook/day3otlk.gif",
    (OutlookDay.DAY4_8, ProductType.CATEGORICAL): "products/exper/day4-8/day4-8prob.gif",
}
for _product in _PROBABILISTIC_SUFFIX:
    _IMAGE_PATHS[(OutlookDay.DAY3, _product)] = "products/outlook/day3prob.gif"
for _day in (OutlookDay.DAY1, OutlookDay.DAY2):
    _IMAGE_PATHS[(_day, ProductType.CATEGORICAL)] = (
        f"products/outlook/day{_day.value}otlk.gif"
    )
    for _product, _suffix in _PROBABILISTIC_SUFFIX.items():
        _IMAGE_PATHS[(_day, _product)] = (
            f"products/outlook/day{_day.value}probotlk_{_suffix}.gif"
        )


def normalize_selection(
    day: str | int | OutlookDay, product_type: str | ProductType
) -> OutlookSelection:
    """Coerce a requested selection onto one that SPC actually publishes.

    Unknown days fall back to day 1 and unknown product types to categorical.
    Days 4-8 only have the categorical image.
    """
    resolved_day = _coerce_day(day)
    resolved_product = _coerce_product(product_type)

    if resolved_day is OutlookDay.DAY4_8:
        resolved_product = ProductType.CATEGORICAL
    return OutlookSelection(day=resolved_day, product_type=resolved_product)


def _coerce_day(day: str | int | OutlookDay) -> OutlookDay:
    if isinstance(day, OutlookDay):
        return day
    try:
        return OutlookDay(str(day).strip())
    except ValueError:
        return OutlookDay.DAY1


def _coerce_product(product_type: str | ProductType) -> ProductType:
    if isinstance(product_type, ProductType):
        return product_type
    try:
        return ProductType(str(product_type).strip().lower())
    except ValueError:
        return ProductType.CATEGORICAL


def resolve_image_url(
    day: str | int | OutlookDay,
    product_type: str | ProductType,
    base_url: str = "https://www.spc.noaa.gov",
) -> str:
    selection = normalize_selection(day, product_type)
    # day 3 publishes one combined probabilistic graphic for every hazard
    path = _IMAGE_PATHS[(selection.day, selection.product_type)]
    return f"{base_url.rstrip('/')}/{path}"


def cache_busted(url: str, now: datetime | None = None) -> str:
    """Append the millisecond timestamp query SPC images need to bypass caches."""
    moment = now or datetime.now(timezone.utc)
    stamp = int(moment.timestamp() * 1000)
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{stamp}"
