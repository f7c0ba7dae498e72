"""Manual entry adapter: an operator pastes a conversation into the form."""

from __future__ import annotations

from typing import Any, Optional

from app.adapters.base import BaseChannelAdapter
from app.schemas.ticket import (
    AgentReplyAnalysis,
    Channel,
    ManualEntryCreate,
    TicketMessageInput,
)
from app.workers.analysis import AnalysisResult


class ManualEntryAdapter(BaseChannelAdapter):
    """Operator-supplied product fields win over the detected product."""

    channel = Channel.MANUAL

    def build_conversation(self, raw: ManualEntryCreate) -> str:
        return raw.chat_conversation

    def analysis_context(self, raw: ManualEntryCreate) -> dict[str, Any]:
        return {
            "productName": raw.product_name or "",
            "productAmazonId": raw.product_amazon_id or "",
            "orderId": raw.order_id or "",
        }

    def to_input(
        self,
        raw: ManualEntryCreate,
        analysis: AnalysisResult,
        agent_analysis: Optional[AgentReplyAnalysis],
    ) -> TicketMessageInput:
        detected = analysis.detected_product
        return TicketMessageInput(
            customer_name=raw.customer_name,
            customer_email=raw.customer_email,
            channel=self.channel,
            customer_text=analysis.customer_analysis.text,
            agent_reply_text=analysis.agent_reply_text,
            order_id=raw.order_id,
            product_id=raw.product_id or (detected.id if detected else ""),
            product_name=raw.product_name or (detected.name if detected else ""),
            product_amazon_id=raw.product_amazon_id
            or (detected.amazon_id if detected else ""),
            customer_analysis=analysis.customer_analysis,
            agent_analysis=agent_analysis,
        )
