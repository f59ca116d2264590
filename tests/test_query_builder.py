from models.session_models import SearchSeed
from services.research.query_builder import UNKNOWN_PRODUCT_QUERY, build_query


def test_visible_text_first_then_hints():
    seed = SearchSeed(
        visible_text=("WH-1000XM5",),
        brand_hint="Sony",
        category_hint="headphones",
        visual_description="black over-ear",
    )
    assert build_query(seed) == "WH-1000XM5 Sony headphones black over-ear"


def test_blank_values_are_dropped():
    seed = SearchSeed(visible_text=("  ", "Sony", ""), brand_hint=" ", category_hint="headphones")
    assert build_query(seed) == "Sony headphones"


def test_empty_seed_returns_sentinel():
    assert build_query(SearchSeed()) == UNKNOWN_PRODUCT_QUERY
    assert build_query(SearchSeed(visible_text=(" ",), visual_description="")) == "unknown product"


def test_variant_caps_terms_and_appends_suffix():
    seed = SearchSeed(visible_text=("a", "b", "c"), brand_hint="d")
    assert build_query(seed, max_terms=2, suffix="price") == "a b price"


def test_sentinel_ignores_suffix():
    assert build_query(SearchSeed(), suffix="price") == UNKNOWN_PRODUCT_QUERY
