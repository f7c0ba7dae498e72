"""Polled mailbox adapter: one analysis per thread, customer = first external sender."""

from __future__ import annotations

from typing import Optional

from app.adapters.base import BaseChannelAdapter
from app.schemas.inbox import EmailThread, InboxItem
from app.schemas.ticket import AgentReplyAnalysis, Channel, TicketMessageInput
from app.workers.analysis import AnalysisResult


class EmailThreadAdapter(BaseChannelAdapter):
    channel = Channel.GMAIL

    def build_conversation(self, raw: EmailThread) -> str:
        customer = [f"Customer: {m.body_text}" for m in raw.messages if not m.is_from_me]
        agent = [f"Agent: {m.body_text}" for m in raw.messages if m.is_from_me]
        return "\n".join(customer + agent)

    def wants_agent_analysis(self, raw: EmailThread, analysis: AnalysisResult) -> bool:
        return any(m.is_from_me for m in raw.messages)

    def first_customer_message(self, raw: EmailThread) -> Optional[InboxItem]:
        return next((m for m in raw.messages if not m.is_from_me), None)

    def to_input(
        self,
        raw: EmailThread,
        analysis: AnalysisResult,
        agent_analysis: Optional[AgentReplyAnalysis],
    ) -> TicketMessageInput:
        first = self.first_customer_message(raw)
        detected = analysis.detected_product
        return TicketMessageInput(
            customer_name=first.from_name if first else "",
            customer_email=first.from_email if first else "",
            channel=self.channel,
            customer_text=analysis.customer_analysis.text,
            agent_reply_text=analysis.agent_reply_text,
            product_id=detected.id if detected else "",
            product_name=detected.name if detected else "",
            product_amazon_id=detected.amazon_id if detected else "",
            customer_analysis=analysis.customer_analysis,
            agent_analysis=agent_analysis,
            external={
                "threadId": raw.thread_id,
                "subject": first.subject if first else "",
            },
        )
