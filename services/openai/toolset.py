"""Research toolset: web search, page fetch, extraction, comparison, purchase."""

import logging
import re
from html import unescape
from typing import Any, Dict, List, Optional, Protocol

import httpx
from openai import AsyncOpenAI

from models.products import (
    PLACEHOLDER_IMAGE_URL,
    BuyResult,
    ExtractedProduct,
    Price,
    ProductSpec,
    SearchResult,
)
from services.realtime.prompts import (
    comparison_prompt,
    extraction_system_prompt,
    extraction_user_prompt,
    search_prompt,
)
from services.realtime.response_parser import extract_text, extract_url_citations, parse_tool_arguments

LOGGER = logging.getLogger(__name__)

USER_AGENT = "shoppinglens-bot/1.0"
MAX_PAGE_TEXT = 4000
CHEAPER_REASON = "Lower price with similar baseline specs."
PRICIER_REASON = "Higher price but could indicate premium build."

FUNCTION_NAME = "extract_product"

FUNCTION_DEFINITION: Dict[str, Any] = {
    "type": "function",
    "name": FUNCTION_NAME,
    "description": "Return the primary product listed on the page.",
    "parameters": {
        "type": "object",
        "properties": {
            "title": {"type": "string"},
            "image_url": {"type": "string"},
            "price": {
                "type": "object",
                "properties": {
                    "amount": {"type": "number"},
                    "currency": {"type": "string"},
                },
                "required": ["amount", "currency"],
                "additionalProperties": False,
            },
            "specs": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "key": {"type": "string"},
                        "value": {"type": "string"},
                    },
                    "required": ["key", "value"],
                    "additionalProperties": False,
                },
            },
        },
        "required": ["title", "image_url", "price", "specs"],
        "additionalProperties": False,
    },
    "strict": True,
}

_SCRIPT_RE = re.compile(r"<script[\s\S]*?>[\s\S]*?</script>", re.IGNORECASE)
_STYLE_RE = re.compile(r"<style[\s\S]*?>[\s\S]*?</style>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")
_SPACE_RE = re.compile(r"\s+")


class Toolset(Protocol):
    """Capabilities the research pipeline depends on.

    ``buy_item`` is optional; callers look it up with ``getattr``.
    """

    async def search_web(self, query: str) -> List[SearchResult]: ...

    async def fetch_page(self, url: str) -> str: ...

    async def extract_product_fields(self, html: str, source_url: str) -> Optional[ExtractedProduct]: ...

    async def compare_products(self, product_a: ExtractedProduct, product_b: ExtractedProduct) -> str: ...


def strip_html(html: str) -> str:
    """Reduce an HTML document to collapsed visible text."""
    text = _SCRIPT_RE.sub(" ", html)
    text = _STYLE_RE.sub(" ", text)
    text = _TAG_RE.sub(" ", text)
    return _SPACE_RE.sub(" ", unescape(text)).strip()


def price_reason(product_a: ExtractedProduct, product_b: ExtractedProduct) -> str:
    """Deterministic comparison used when no model is available."""
    if product_a.price.amount <= product_b.price.amount:
        return CHEAPER_REASON
    return PRICIER_REASON


class OpenAIToolset:
    """Toolset backed by the OpenAI Responses API and plain HTTP fetches.

    Without a client every model-backed capability degrades: search returns
    no results, extraction returns None and comparison falls back to price.
    """

    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        *,
        model: str = "gpt-5-mini",
        http_timeout: float = 12.0,
        search_timeout: float = 15.0,
    ) -> None:
        self.client = client
        self.model = model
        self.http_timeout = http_timeout
        self.search_timeout = search_timeout

    async def search_web(self, query: str) -> List[SearchResult]:
        """Return cited shopping listings for a query, best first."""
        if self.client is None:
            LOGGER.warning("Web search skipped: OpenAI client is not configured.")
            return []
        try:
            response = await self.client.responses.create(
                model=self.model,
                input=search_prompt(query),
                tools=[{"type": "web_search_preview"}],
                timeout=self.search_timeout,
            )
        except Exception as exc:
            LOGGER.error("OpenAI web search failed for %r: %s", query, exc)
            return []
        results = [SearchResult(title=title, url=url) for title, url in extract_url_citations(response)]
        LOGGER.info("Web search for %r returned %d results", query, len(results))
        return results

    async def fetch_page(self, url: str) -> str:
        """Return page HTML, or an empty string on any HTTP failure."""
        try:
            async with httpx.AsyncClient(
                timeout=self.http_timeout,
                follow_redirects=True,
                headers={"User-Agent": USER_AGENT},
            ) as http:
                response = await http.get(url)
        except httpx.HTTPError as exc:
            LOGGER.warning("Fetching %s failed: %s", url, exc)
            return ""
        if response.status_code >= 400:
            LOGGER.warning("Fetching %s returned HTTP %d", url, response.status_code)
            return ""
        return response.text

    async def extract_product_fields(self, html: str, source_url: str) -> Optional[ExtractedProduct]:
        """Extract the page's primary product, or None when that is not possible."""
        if self.client is None:
            return None
        text = strip_html(html or "")[:MAX_PAGE_TEXT]
        if not text:
            return None
        try:
            response = await self.client.responses.create(
                model=self.model,
                input=[
                    {"type": "message", "role": "system", "content": [{"type": "input_text", "text": extraction_system_prompt()}]},
                    {"type": "message", "role": "user", "content": [{"type": "input_text", "text": extraction_user_prompt(source_url, text)}]},
                ],
                tools=[FUNCTION_DEFINITION],
                tool_choice={"type": "function", "name": FUNCTION_NAME},
                timeout=self.http_timeout,
            )
            args = parse_tool_arguments(response, FUNCTION_NAME)
            price = args.get("price") or {}
            return ExtractedProduct(
                title=args["title"],
                image_url=args.get("image_url") or PLACEHOLDER_IMAGE_URL,
                price=Price(amount=float(price.get("amount") or 0), currency=price.get("currency") or "USD"),
                specs=[ProductSpec(key=spec["key"], value=spec["value"]) for spec in args.get("specs") or []],
                source_url=source_url,
            )
        except Exception as exc:
            LOGGER.warning("Product extraction failed for %s: %s", source_url, exc)
            return None

    async def compare_products(self, product_a: ExtractedProduct, product_b: ExtractedProduct) -> str:
        """Return a one or two sentence reason to prefer or skip ``product_b``."""
        if self.client is None:
            return price_reason(product_a, product_b)
        try:
            response = await self.client.responses.create(
                model=self.model,
                input=comparison_prompt(product_a, product_b),
                timeout=self.http_timeout,
            )
        except Exception as exc:
            LOGGER.warning("Product comparison failed: %s", exc)
            return price_reason(product_a, product_b)
        return extract_text(response).strip() or price_reason(product_a, product_b)

    async def buy_item(self, product_id: str) -> BuyResult:
        return BuyResult(status="ok", message=f"Purchase flow started for {product_id}")
