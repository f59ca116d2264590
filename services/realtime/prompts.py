"""Prompt helpers for product research and shopping summaries."""

from __future__ import annotations

from typing import Optional, Sequence

from models.products import Alternative, ExtractedProduct


def search_prompt(query: str) -> str:
	"""Return the web-search instruction for a product query."""
	return (
		f'Search for "{query}" prices on shopping sites like Amazon, Best Buy, Walmart, Target, '
		"B&H Photo, Newegg. Find product listings with prices and cite each listing you use."
	)


def extraction_system_prompt() -> str:
	return (
		"You extract the primary product listed on a retailer page. "
		"Report the title, an image URL if present, the numeric price with its currency, and key specs. "
		"If the price is missing, use amount 0 and currency USD."
	)


def extraction_user_prompt(source_url: str, page_text: str) -> str:
	return f"URL: {source_url}\n\nContent:\n{page_text}"


def comparison_prompt(product_a: ExtractedProduct, product_b: ExtractedProduct) -> str:
	"""Return the prompt asking why an alternative is better or worse."""
	return (
		"Compare these two products and explain in 1-2 sentences why the alternative might be better or worse.\n\n"
		f"Product A: {product_a.title} (${product_a.price.amount} {product_a.price.currency})\n"
		f"Product B: {product_b.title} (${product_b.price.amount} {product_b.price.currency})\n\n"
		"Focus on price and any obvious differences in title."
	)


def summary_prompt(
	product: ExtractedProduct,
	alternatives: Sequence[Alternative],
	fallback_json: str,
	brand_hint: Optional[str] = None,
	category_hint: Optional[str] = None,
) -> str:
	"""Return the structured shopping summary request."""
	alt_lines = "\n".join(
		f"{index}. {alt.title} | {alt.price.amount} {alt.price.currency} | {alt.source_url or 'unknown'}"
		for index, alt in enumerate(alternatives, start=1)
	)
	return (
		"You are preparing a structured shopping summary. Output ONLY valid JSON with these keys:\n"
		"productName, brand, detectedPrice, competitors, isCompatible, compatibilityNote, valueScore, aiInsight.\n\n"
		"Rules:\n"
		'- competitors is an array of objects: { "site": string, "price": string }\n'
		'- valueScore must be one of: "buy", "hold", "avoid"\n'
		'- detectedPrice must be a string like "$123.45"\n'
		"- If you are uncertain, keep fields conservative and say so in aiInsight.\n\n"
		"Product:\n"
		f"Title: {product.title}\n"
		f"Price: {product.price.amount} {product.price.currency}\n"
		f"Source: {product.source_url}\n"
		f"Brand hint: {brand_hint or 'none'}\n"
		f"Category hint: {category_hint or 'none'}\n\n"
		f"Alternatives:\n{alt_lines or 'none'}\n\n"
		f"Draft summary computed from the data:\n{fallback_json}\n\n"
		"Return ONLY JSON."
	)
