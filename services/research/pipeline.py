"""Web research for one product query: a top match plus ranked alternatives."""

from __future__ import annotations

import asyncio
import logging
from typing import List

from models.payloads import ResearchResultsPayload
from models.products import (
	ALTERNATIVE_PLACEHOLDER_IMAGE_URL,
	PLACEHOLDER_IMAGE_URL,
	UNKNOWN_SOURCE_URL,
	Alternative,
	ExtractedProduct,
	Price,
	SearchResult,
)
from services.openai.toolset import Toolset

LOGGER = logging.getLogger(__name__)

MAX_ALTERNATIVES = 3
GENERIC_ALTERNATIVE_REASON = "Alternative product"


def fallback_product(query: str, candidate: SearchResult | None = None) -> ExtractedProduct:
	"""Zero-priced stand-in when nothing could be extracted."""
	return ExtractedProduct(
		title=candidate.title if candidate else f"Result for {query}",
		image_url=PLACEHOLDER_IMAGE_URL,
		price=Price(amount=0.0, currency="USD"),
		specs=[],
		source_url=candidate.url if candidate else UNKNOWN_SOURCE_URL,
	)


def placeholder_alternative(result: SearchResult) -> Alternative:
	return Alternative(
		title=result.title,
		price=Price(amount=0.0, currency="USD"),
		image_url=ALTERNATIVE_PLACEHOLDER_IMAGE_URL,
		reason=GENERIC_ALTERNATIVE_REASON,
		source_url=result.url,
	)


class ResearchPipeline:
	"""Run search, extraction and comparison through an injected toolset."""

	def __init__(self, tools: Toolset, max_alternatives: int = MAX_ALTERNATIVES) -> None:
		if tools is None:
			raise ValueError("A research toolset is required.")
		self.tools = tools
		self.max_alternatives = max_alternatives

	async def run(self, session_id: str, thread_id: str, query: str) -> ResearchResultsPayload:
		"""Return research results for ``query``; never fails on empty search.

		Errors raised by ``search_web`` or by the primary page lookup propagate.
		Alternative lookups degrade individually.
		"""
		results = await self.tools.search_web(query)
		LOGGER.info("Research for %r: %d search results", query, len(results))

		top_match = await self._top_match(query, results[0] if results else None)
		alternatives = await self._alternatives(top_match, results[1 : 1 + self.max_alternatives])

		return ResearchResultsPayload(
			session_id=session_id,
			thread_id=thread_id,
			query=query,
			top_match=top_match,
			alternatives=alternatives,
		)

	async def _top_match(self, query: str, candidate: SearchResult | None) -> ExtractedProduct:
		if candidate is None:
			LOGGER.warning("No search results for %r; using fallback product.", query)
			return fallback_product(query)
		html = await self.tools.fetch_page(candidate.url)
		product = await self.tools.extract_product_fields(html, candidate.url)
		if product is None:
			LOGGER.warning("Extraction failed for %s; using fallback product.", candidate.url)
			return fallback_product(query, candidate)
		return product

	async def _alternatives(self, top_match: ExtractedProduct, candidates: List[SearchResult]) -> List[Alternative]:
		# gather keeps input order regardless of completion order
		return list(await asyncio.gather(*(self._lookup_alternative(top_match, result) for result in candidates)))

	async def _lookup_alternative(self, top_match: ExtractedProduct, result: SearchResult) -> Alternative:
		try:
			html = await self.tools.fetch_page(result.url)
			product = await self.tools.extract_product_fields(html, result.url) if html else None
			if product is None:
				return placeholder_alternative(result)
			reason = await self.tools.compare_products(top_match, product)
		except Exception as exc:
			LOGGER.warning("Alternative lookup failed for %s: %s", result.url, exc)
			return placeholder_alternative(result)
		return Alternative(
			title=result.title,
			price=product.price,
			image_url=product.image_url or ALTERNATIVE_PLACEHOLDER_IMAGE_URL,
			reason=reason,
			source_url=result.url,
		)
