from datetime import datetime, timezone

import pytest

from stormdash.outlook import (
    OutlookDay,
    ProductType,
    cache_busted,
    normalize_selection,
    resolve_image_url,
)

SPC = "https://www.spc.noaa.gov"


@pytest.mark.parametrize(
    "day, product, path",
    [
        ("1", "categorical", "products/outlook/day1otlk.gif"),
        ("1", "tornado", "products/outlook/day1probotlk_torn.gif"),
        ("1", "wind", "products/outlook/day1probotlk_wind.gif"),
        ("2", "hail", "products/outlook/day2probotlk_hail.gif"),
        ("2", "categorical", "products/outlook/day2otlk.gif"),
        ("3", "categorical", "products/outlook/day3otlk.gif"),
        ("3", "tornado", "products/outlook/day3prob.gif"),
        ("3", "hail", "products/outlook/day3prob.gif"),
        ("4-8", "categorical", "products/exper/day4-8/day4-8prob.gif"),
    ],
)
def test_resolve_image_url(day, product, path) -> None:
    assert resolve_image_url(day, product) == f"{SPC}/{path}"


def test_day_4_8_ignores_probabilistic_type() -> None:
    assert resolve_image_url("4-8", "wind") == resolve_image_url("4-8", "categorical")
    assert normalize_selection("4-8", "wind").product_type is ProductType.CATEGORICAL


def test_invalid_inputs_normalize_instead_of_raising() -> None:
    selection = normalize_selection("9", "lightning")

    assert selection.day is OutlookDay.DAY1
    assert selection.product_type is ProductType.CATEGORICAL
    assert resolve_image_url(2, "HAIL") == f"{SPC}/products/outlook/day2probotlk_hail.gif"


def test_custom_base_url_is_trimmed() -> None:
    url = resolve_image_url("1", "categorical", base_url="http://mirror.test/")

    assert url == "http://mirror.test/products/outlook/day1otlk.gif"


def test_cache_busted_appends_millisecond_timestamp() -> None:
    moment = datetime(2025, 5, 19, 20, 0, tzinfo=timezone.utc)
    url = f"{SPC}/products/outlook/day1otlk.gif"

    assert cache_busted(url, moment) == f"{url}?1747684800000"
    assert cache_busted(f"{url}?a=1", moment) == f"{url}?a=1&1747684800000"


def test_enum_members_resolve_to_their_own_image() -> None:
    assert resolve_image_url(OutlookDay.DAY3, ProductType.WIND) == (
        f"{SPC}/products/outlook/day3prob.gif"
    )
    assert resolve_image_url(OutlookDay.DAY2, ProductType.HAIL) == (
        f"{SPC}/products/outlook/day2probotlk_hail.gif"
    )
    selection = normalize_selection(OutlookDay.DAY4_8, ProductType.TORNADO)
    assert selection == normalize_selection("4-8", "categorical")
