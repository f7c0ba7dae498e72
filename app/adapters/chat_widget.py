"""Chat widget adapter. Guests without an email are keyed by their session id."""

from __future__ import annotations

from typing import Optional

from app.adapters.base import BaseChannelAdapter
from app.schemas.inbox import ChatTranscript
from app.schemas.ticket import AgentReplyAnalysis, Channel, TicketMessageInput
from app.workers.analysis import AnalysisResult


class ChatWidgetAdapter(BaseChannelAdapter):
    channel = Channel.CHAT

    def build_conversation(self, raw: ChatTranscript) -> str:
        lines = []
        for m in raw.messages:
            text = (m.message_text or "").strip()
            if not text:
                continue
            prefix = "Customer" if m.is_from_customer else "Agent"
            lines.append(f"{prefix}: {text}")
        return "\n".join(lines)

    def analysis_context(self, raw: ChatTranscript) -> dict[str, str]:
        return {"orderId": raw.session.order_number or ""}

    def wants_agent_analysis(self, raw: ChatTranscript, analysis: AnalysisResult) -> bool:
        return any(not m.is_from_customer for m in raw.messages)

    def to_input(
        self,
        raw: ChatTranscript,
        analysis: AnalysisResult,
        agent_analysis: Optional[AgentReplyAnalysis],
    ) -> TicketMessageInput:
        session = raw.session
        detected = analysis.detected_product
        return TicketMessageInput(
            customer_name=session.customer_name,
            customer_email=session.customer_email,
            customer_fallback_id=session.session_id,
            channel=self.channel,
            customer_text=analysis.customer_analysis.text,
            agent_reply_text=analysis.agent_reply_text,
            order_id=session.order_number,
            product_id=detected.id if detected else "",
            product_name=detected.name if detected else "",
            product_amazon_id=detected.amazon_id if detected else "",
            customer_analysis=analysis.customer_analysis,
            agent_analysis=agent_analysis,
            external={
                "sessionId": session.session_id,
                "storeUrl": session.shopify_store_url or "",
            },
        )
