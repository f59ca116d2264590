"""Standardized payloads streamed to session listeners.

Every message the orchestrator emits is one of these models. Clients branch on
``type`` only, so errors and results share the same stream.
"""

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from models.products import Alternative, ExtractedProduct

ValueScore = Literal["buy", "hold", "avoid"]
VALUE_SCORES = ("buy", "hold", "avoid")


class InfoPayload(BaseModel):
    type: Literal["Info"] = "Info"
    session_id: str
    thread_id: Optional[str] = None
    message: str


class ResearchResultsPayload(BaseModel):
    type: Literal["ResearchResults"] = "ResearchResults"
    session_id: str
    thread_id: str
    query: str
    top_match: ExtractedProduct
    alternatives: List[Alternative] = Field(default_factory=list)


class CompetitorPrice(BaseModel):
    site: str
    price: str


class ShoppingSummaryPayload(BaseModel):
    """Price-comparison summary; camelCase on the wire."""

    model_config = ConfigDict(populate_by_name=True)

    type: Literal["ShoppingSummary"] = "ShoppingSummary"
    session_id: str
    thread_id: str
    product_name: str = Field(alias="productName")
    brand: str
    detected_price: str = Field(alias="detectedPrice")
    competitors: List[CompetitorPrice] = Field(default_factory=list)
    is_compatible: bool = Field(default=False, alias="isCompatible")
    compatibility_note: str = Field(alias="compatibilityNote")
    value_score: ValueScore = Field(alias="valueScore")
    ai_insight: str = Field(alias="aiInsight")


class AISummaryPayload(BaseModel):
    type: Literal["AISummary"] = "AISummary"
    session_id: str
    thread_id: str
    summary: str
    pros: List[str] = Field(default_factory=list)
    cons: List[str] = Field(default_factory=list)
    best_for: List[str] = Field(default_factory=list)


AgentPayload = Union[InfoPayload, ResearchResultsPayload, ShoppingSummaryPayload, AISummaryPayload]


def payload_to_wire(payload: AgentPayload) -> Dict[str, Any]:
    """Return the JSON-ready dict clients receive."""
    return payload.model_dump(mode="json", by_alias=True, exclude_none=True)
