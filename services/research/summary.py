"""Shopping summaries built from research results.

Two strategies share one interface: the price-comparison ``value_score``
summary (optionally enriched by a language model) and the heuristic
``pros_cons`` summary.
"""

from __future__ import annotations

import json
import logging
import math
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import urlparse

from openai import AsyncOpenAI

from models.payloads import (
	VALUE_SCORES,
	AgentPayload,
	AISummaryPayload,
	CompetitorPrice,
	ShoppingSummaryPayload,
	payload_to_wire,
)
from models.products import Alternative, ExtractedProduct, Price
from models.session_models import SearchSeed
from services.realtime.prompts import summary_prompt
from services.realtime.response_parser import extract_text
from utils.json_parsing import parse_json_object

LOGGER = logging.getLogger(__name__)

BUY_RATIO = 0.98
AVOID_RATIO = 1.05
COMPATIBILITY_NOTE = "Compatibility not assessed with current sources."

RETAILER_NAMES = (
	("amazon", "Amazon"),
	("bestbuy", "Best Buy"),
	("walmart", "Walmart"),
	("target", "Target"),
	("ebay", "eBay"),
	("newegg", "Newegg"),
	("bhphoto", "B&H Photo"),
)
REDIRECT_HOSTS = ("google.com", "vertexaisearch")


def format_price(price: Optional[Price]) -> str:
	if price is None or not math.isfinite(price.amount):
		return "Unknown"
	return f"${price.amount:.2f}"


def extract_brand(title: str, seed: Optional[SearchSeed] = None) -> str:
	if seed is not None and seed.brand_hint and seed.brand_hint.strip():
		return seed.brand_hint.strip()
	tokens = (title or "").split()
	return tokens[0] if tokens else "Unknown"


def extract_site(url: Optional[str], fallback: Optional[str] = None) -> str:
	"""Return a friendly retailer name for a listing URL."""
	if not url:
		return fallback or "Unknown"
	try:
		host = (urlparse(url).hostname or "").lower()
	except ValueError:
		return fallback or "Unknown"
	if host.startswith("www."):
		host = host[4:]
	if any(redirect in host for redirect in REDIRECT_HOSTS):
		return fallback or "Online Retailer"
	for marker, name in RETAILER_NAMES:
		if marker in host:
			return name
	return host or fallback or "Unknown"


def compute_value_score(detected: float, competitors: Sequence[float]) -> str:
	"""Rate the detected price against the mean competitor price.

	An unknown detected price (zero, negative or non-finite) rates "hold", never "buy".
	"""
	if not competitors or not math.isfinite(detected) or detected <= 0:
		return "hold"
	mean = sum(competitors) / len(competitors)
	if detected <= mean * BUY_RATIO:
		return "buy"
	if detected <= mean * AVOID_RATIO:
		return "hold"
	return "avoid"


def priced_alternatives(alternatives: Sequence[Alternative]) -> List[Alternative]:
	"""Alternatives with a usable (positive, finite) price."""
	return [alt for alt in alternatives if math.isfinite(alt.price.amount) and alt.price.amount > 0]


def build_fallback_summary(
	session_id: str,
	thread_id: str,
	product: ExtractedProduct,
	alternatives: Sequence[Alternative],
	seed: Optional[SearchSeed] = None,
) -> ShoppingSummaryPayload:
	"""Deterministic price-comparison summary."""
	detected_price = format_price(product.price)
	valid = priced_alternatives(alternatives)
	competitors = [CompetitorPrice(site=extract_site(alt.source_url, alt.title), price=format_price(alt.price)) for alt in valid]
	value_score = compute_value_score(product.price.amount, [alt.price.amount for alt in valid])
	if competitors:
		insight = f"Compared {len(competitors)} competitor prices; current price is {detected_price}."
	else:
		insight = "Limited competitor pricing data available."
	return ShoppingSummaryPayload(
		session_id=session_id,
		thread_id=thread_id,
		product_name=product.title,
		brand=extract_brand(product.title, seed),
		detected_price=detected_price,
		competitors=competitors,
		is_compatible=False,
		compatibility_note=COMPATIBILITY_NOTE,
		value_score=value_score,
		ai_insight=f"{insight} Value score: {value_score}.",
	)


def _text_or(value: Any, fallback: str) -> str:
	return value.strip() if isinstance(value, str) and value.strip() else fallback


def _competitors_or(value: Any, fallback: List[CompetitorPrice]) -> List[CompetitorPrice]:
	if not isinstance(value, list):
		return fallback
	competitors: List[CompetitorPrice] = []
	for item in value:
		if not isinstance(item, dict):
			return fallback
		site, price = item.get("site"), item.get("price")
		if not isinstance(site, str) or not isinstance(price, str):
			return fallback
		competitors.append(CompetitorPrice(site=site, price=price))
	return competitors


def merge_generated_summary(raw: str, fallback: ShoppingSummaryPayload) -> ShoppingSummaryPayload:
	"""Overlay model output on the fallback field by field.

	Missing or wrong-typed fields keep the fallback value; output that is not a
	JSON object returns the fallback unchanged.
	"""
	parsed: Optional[Dict[str, Any]] = parse_json_object(raw)
	if parsed is None:
		LOGGER.warning("Summary model output was not JSON; keeping computed summary.")
		return fallback
	is_compatible = parsed.get("isCompatible")
	value_score = parsed.get("valueScore")
	return fallback.model_copy(
		update={
			"product_name": _text_or(parsed.get("productName"), fallback.product_name),
			"brand": _text_or(parsed.get("brand"), fallback.brand),
			"detected_price": _text_or(parsed.get("detectedPrice"), fallback.detected_price),
			"competitors": _competitors_or(parsed.get("competitors"), fallback.competitors),
			"is_compatible": is_compatible if isinstance(is_compatible, bool) else fallback.is_compatible,
			"compatibility_note": _text_or(parsed.get("compatibilityNote"), fallback.compatibility_note),
			"value_score": value_score if value_score in VALUE_SCORES else fallback.value_score,
			"ai_insight": _text_or(parsed.get("aiInsight"), fallback.ai_insight),
		}
	)


class SummaryStrategy:
	"""Interface for turning research results into a summary payload."""

	name = "base"

	async def build(
		self,
		session_id: str,
		thread_id: str,
		product: ExtractedProduct,
		alternatives: Sequence[Alternative],
		seed: Optional[SearchSeed] = None,
	) -> AgentPayload:
		raise NotImplementedError


class ValueScoreSummaryStrategy(SummaryStrategy):
	"""Price-comparison summary, optionally rewritten by a language model."""

	name = "value_score"

	def __init__(self, client: Optional[AsyncOpenAI] = None, model: str = "gpt-5-mini") -> None:
		self.client = client
		self.model = model

	async def build(
		self,
		session_id: str,
		thread_id: str,
		product: ExtractedProduct,
		alternatives: Sequence[Alternative],
		seed: Optional[SearchSeed] = None,
	) -> ShoppingSummaryPayload:
		fallback = build_fallback_summary(session_id, thread_id, product, alternatives, seed)
		if self.client is None:
			return fallback

		draft = {key: value for key, value in payload_to_wire(fallback).items() if key not in ("type", "session_id", "thread_id")}
		prompt = summary_prompt(
			product,
			alternatives,
			json.dumps(draft),
			brand_hint=seed.brand_hint if seed else None,
			category_hint=seed.category_hint if seed else None,
		)
		try:
			response = await self.client.responses.create(model=self.model, input=prompt)
		except Exception as exc:
			LOGGER.error("Summary generation failed: %s", exc)
			return fallback
		return merge_generated_summary(extract_text(response), fallback)


class ProsConsSummaryStrategy(SummaryStrategy):
	"""Short narrative with heuristic pros, cons and audience tags."""

	name = "pros_cons"

	async def build(
		self,
		session_id: str,
		thread_id: str,
		product: ExtractedProduct,
		alternatives: Sequence[Alternative],
		seed: Optional[SearchSeed] = None,
	) -> AISummaryPayload:
		valid = priced_alternatives(alternatives)
		score = compute_value_score(product.price.amount, [alt.price.amount for alt in valid])
		if product.price.amount > 0:
			summary = f"This looks like {product.title}. Pricing starts around {format_price(product.price)}."
		else:
			summary = f"This looks like {product.title}. Pricing is not available yet."

		pros = ["Visible source link"]
		cons = []
		if score == "buy":
			pros.append("Priced below competing listings")
		elif score == "avoid":
			cons.append("Priced above competing listings")
		if product.specs:
			pros.append("Specs listed by the retailer")
		else:
			cons.append("Limited specs")
		if not valid:
			cons.append("Limited competitor pricing")

		best_for = {
			"buy": ["Buying now"],
			"hold": ["Comparing a few more options"],
			"avoid": ["Waiting for a better deal"],
		}[score]
		return AISummaryPayload(
			session_id=session_id,
			thread_id=thread_id,
			summary=summary,
			pros=pros,
			cons=cons,
			best_for=best_for,
		)


def select_summary_strategy(name: str, client: Optional[AsyncOpenAI] = None, model: str = "gpt-5-mini") -> SummaryStrategy:
	"""Return the configured summary strategy."""
	key = (name or "").strip().lower()
	if key == ValueScoreSummaryStrategy.name:
		return ValueScoreSummaryStrategy(client, model)
	if key == ProsConsSummaryStrategy.name:
		return ProsConsSummaryStrategy()
	raise ValueError(f"Unsupported summary strategy '{name}'. Supported: value_score, pros_cons")
