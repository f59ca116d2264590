"""
Shared fixtures for the shopping backend tests.

FakeToolset stands in for search/fetch/extraction so the pipeline and
orchestrator can be exercised without network or model calls.
"""

import asyncio
from typing import Dict, List, Optional, Set

import pytest

from models.products import BuyResult, ExtractedProduct, Price, SearchResult
from models.session_models import PickupEvent, SearchSeed
from services.realtime.orchestrator import ShoppingOrchestrator
from services.realtime.pickup_filter import PickupFilter
from services.realtime.session_store import SessionStore
from services.research.pipeline import ResearchPipeline
from services.research.summary import ValueScoreSummaryStrategy


def make_product(title: str, amount: float, url: str) -> ExtractedProduct:
    return ExtractedProduct(
        title=title,
        image_url=f"{url}/image.jpg",
        price=Price(amount=amount, currency="USD"),
        specs=[],
        source_url=url,
    )


class FakeToolset:
    """In-memory toolset keyed by URL."""

    def __init__(
        self,
        results: Optional[List[SearchResult]] = None,
        products: Optional[Dict[str, ExtractedProduct]] = None,
        failing_urls: Optional[Set[str]] = None,
        delays: Optional[Dict[str, float]] = None,
    ):
        self.results = results or []
        self.products = products or {}
        self.failing_urls = failing_urls or set()
        self.delays = delays or {}
        self.queries: List[str] = []
        self.fetched: List[str] = []
        self.bought: List[str] = []

    async def search_web(self, query):
        self.queries.append(query)
        return list(self.results)

    async def fetch_page(self, url):
        self.fetched.append(url)
        if url in self.delays:
            await asyncio.sleep(self.delays[url])
        if url in self.failing_urls:
            raise ConnectionError(f"fetch failed for {url}")
        return f"<html><body>{url}</body></html>"

    async def extract_product_fields(self, html, source_url):
        return self.products.get(source_url)

    async def compare_products(self, product_a, product_b):
        return f"{product_b.title} vs {product_a.title}"

    async def buy_item(self, product_id):
        self.bought.append(product_id)
        return BuyResult(status="ok", message=f"Purchase flow started for {product_id}")


class RecordingSink:
    """Broadcast sink that keeps every payload it receives."""

    def __init__(self):
        self.sent = []

    async def broadcast(self, session_id, payload):
        self.sent.append((session_id, payload))

    def types(self):
        return [payload.type for _, payload in self.sent]


@pytest.fixture
def search_results():
    return [
        SearchResult(title="Sony WH-1000XM5 at Amazon", url="https://www.amazon.com/xm5"),
        SearchResult(title="Sony WH-1000XM5 at Best Buy", url="https://www.bestbuy.com/xm5"),
        SearchResult(title="Sony WH-1000XM5 at Walmart", url="https://www.walmart.com/xm5"),
        SearchResult(title="Sony WH-1000XM5 at Target", url="https://www.target.com/xm5"),
        SearchResult(title="Sony WH-1000XM5 at eBay", url="https://www.ebay.com/xm5"),
    ]


@pytest.fixture
def tools(search_results):
    products = {
        result.url: make_product(result.title, amount, result.url)
        for result, amount in zip(search_results, [329.99, 349.99, 339.0, 359.99, 299.0])
    }
    return FakeToolset(results=search_results, products=products)


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def store():
    return SessionStore()


@pytest.fixture
def pickup_filter():
    return PickupFilter(threshold=0.6, debounce_ms=1500)


@pytest.fixture
def orchestrator(store, sink, tools, pickup_filter):
    return ShoppingOrchestrator(store, sink, ResearchPipeline(tools), ValueScoreSummaryStrategy(), pickup_filter)


@pytest.fixture
def sony_event():
    return PickupEvent(
        event_id="evt-1",
        confidence=0.9,
        frame_ref="frame://1",
        search_seed=SearchSeed(visible_text=("Sony", "WH-1000XM5")),
    )
