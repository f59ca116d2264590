"""Tests for the OpenAI-backed toolset and its response helpers."""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock

from conftest import make_product
from services.openai.toolset import (
    CHEAPER_REASON,
    FUNCTION_NAME,
    PRICIER_REASON,
    OpenAIToolset,
    strip_html,
)
from services.realtime.response_parser import extract_text, extract_url_citations, parse_tool_arguments
from utils.json_parsing import parse_json_object


def fake_client(response=None, error=None):
    create = AsyncMock(return_value=response) if error is None else AsyncMock(side_effect=error)
    return SimpleNamespace(responses=SimpleNamespace(create=create))


def function_call_response(args):
    return {"output": [{"type": "function_call", "name": FUNCTION_NAME, "arguments": json.dumps(args)}]}


SEARCH_RESPONSE = {
    "output": [
        {"type": "web_search_call"},
        {
            "type": "message",
            "content": [
                {
                    "type": "output_text",
                    "text": "Found listings.",
                    "annotations": [
                        {"type": "url_citation", "url": "https://www.amazon.com/a", "title": "Amazon listing"},
                        {"type": "url_citation", "url": "https://www.bestbuy.com/b", "title": "Best Buy listing"},
                        {"type": "url_citation", "url": "https://www.amazon.com/a", "title": "Duplicate"},
                    ],
                }
            ],
        },
    ]
}


class TestWithoutClient:
    def setup_method(self):
        self.tools = OpenAIToolset(None)

    async def test_search_returns_nothing(self):
        assert await self.tools.search_web("anything") == []

    async def test_extraction_returns_none(self):
        assert await self.tools.extract_product_fields("<p>Price $10</p>", "https://x.example") is None

    async def test_compare_uses_price(self):
        cheap = make_product("A", 10.0, "https://a.example")
        pricey = make_product("B", 20.0, "https://b.example")
        assert await self.tools.compare_products(cheap, pricey) == CHEAPER_REASON
        assert await self.tools.compare_products(pricey, cheap) == PRICIER_REASON

    async def test_buy_item(self):
        result = await self.tools.buy_item("sku-9")
        assert result.status == "ok"
        assert result.message == "Purchase flow started for sku-9"


class TestWithClient:
    async def test_search_parses_citations(self):
        tools = OpenAIToolset(fake_client(SEARCH_RESPONSE), model="m")

        results = await tools.search_web("sony xm5")

        assert [(r.title, r.url) for r in results] == [
            ("Amazon listing", "https://www.amazon.com/a"),
            ("Best Buy listing", "https://www.bestbuy.com/b"),
        ]

    async def test_search_error_returns_empty(self):
        tools = OpenAIToolset(fake_client(error=RuntimeError("boom")))
        assert await tools.search_web("q") == []

    async def test_extraction_builds_product(self):
        args = {
            "title": "Sony WH-1000XM5",
            "image_url": "",
            "price": {"amount": 329.99, "currency": "USD"},
            "specs": [{"key": "Color", "value": "Black"}],
        }
        client = fake_client(function_call_response(args))
        tools = OpenAIToolset(client)

        product = await tools.extract_product_fields("<html><h1>Sony</h1></html>", "https://shop.example/p")

        assert product.title == "Sony WH-1000XM5"
        assert product.price.amount == 329.99
        assert product.image_url.startswith("https://placehold.co")
        assert product.source_url == "https://shop.example/p"
        assert product.specs[0].value == "Black"
        assert client.responses.create.await_args.kwargs["tool_choice"] == {"type": "function", "name": FUNCTION_NAME}

    async def test_extraction_failure_returns_none(self):
        tools = OpenAIToolset(fake_client({"output": []}))
        assert await tools.extract_product_fields("<p>text</p>", "https://x.example") is None

    async def test_blank_page_skips_model(self):
        client = fake_client({"output": []})
        tools = OpenAIToolset(client)

        assert await tools.extract_product_fields("<script>x()</script>", "https://x.example") is None
        client.responses.create.assert_not_awaited()

    async def test_compare_uses_model_text(self):
        tools = OpenAIToolset(fake_client({"output_text": " Cheaper and newer. "}))
        a, b = make_product("A", 1.0, "https://a"), make_product("B", 2.0, "https://b")
        assert await tools.compare_products(a, b) == "Cheaper and newer."


class TestHelpers:
    def test_strip_html(self):
        html = "<style>p{}</style><script>var a=1;</script><p>Sony &amp; Co</p>\n<b>$10</b>"
        assert strip_html(html) == "Sony & Co $10"

    def test_parse_tool_arguments_ignores_other_calls(self):
        response = {
            "output": [
                {"type": "function_call", "name": "other", "arguments": "{}"},
                {"type": "function_call", "name": FUNCTION_NAME, "arguments": '{"title": "x"}'},
            ]
        }
        assert parse_tool_arguments(response, FUNCTION_NAME) == {"title": "x"}

    def test_extract_text_prefers_message_content(self):
        response = {"output": [{"type": "message", "content": [{"type": "output_text", "text": "hello"}]}]}
        assert extract_text(response) == "hello"
        assert extract_text({"output_text": "fallback"}) == "fallback"

    def test_extract_url_citations_handles_missing_content(self):
        assert extract_url_citations({"output": [{"type": "message"}]}) == []

    def test_parse_json_object(self):
        assert parse_json_object('{"a": 1}') == {"a": 1}
        assert parse_json_object('Sure! {"a": "}"} trailing') == {"a": "}"}
        assert parse_json_object("[1, 2]") is None
        assert parse_json_object("") is None
