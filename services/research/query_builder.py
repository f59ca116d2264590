"""Turn detection hints into a web search query."""

from __future__ import annotations

from typing import List, Optional

from models.session_models import SearchSeed

UNKNOWN_PRODUCT_QUERY = "unknown product"


def build_query(seed: SearchSeed, *, max_terms: Optional[int] = None, suffix: Optional[str] = None) -> str:
	"""Join seed hints, strongest signal first.

	Text printed on the product outranks the brand hint, which outranks the
	category and finally the free-form visual description.
	"""
	candidates = [*seed.visible_text, seed.brand_hint, seed.category_hint, seed.visual_description]
	terms: List[str] = [value.strip() for value in candidates if value and value.strip()]
	if not terms:
		return UNKNOWN_PRODUCT_QUERY
	if max_terms is not None:
		terms = terms[:max_terms]
	if suffix:
		terms.append(suffix)
	return " ".join(terms)
