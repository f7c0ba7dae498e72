"""
Channel adapter interface.

Adapters encapsulate transport-specific logic: they turn a raw record into
conversation text, run the AI analysis, and expose a normalized
TicketMessageInput to the ticket core.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

from app.schemas.ticket import AgentReplyAnalysis, Channel, TicketMessageInput
from app.workers.analysis import AnalysisResult, ConversationAnalyzer


class BaseChannelAdapter(ABC):
    """Contract for channel adapters. New channels implement this interface."""

    channel: Channel

    @abstractmethod
    def build_conversation(self, raw: Any) -> str:
        """Render the raw record as 'Customer: ...' / 'Agent: ...' lines."""
        ...

    @abstractmethod
    def to_input(
        self,
        raw: Any,
        analysis: AnalysisResult,
        agent_analysis: Optional[AgentReplyAnalysis],
    ) -> TicketMessageInput:
        """Combine the raw record and a successful analysis into a fold input."""
        ...

    def analysis_context(self, raw: Any) -> dict[str, Any]:
        """Extra context for the analysis prompt. Override if the channel has any."""
        return {}

    def wants_agent_analysis(self, raw: Any, analysis: AnalysisResult) -> bool:
        return bool(analysis.agent_reply_text.strip())

    async def build_input(
        self, raw: Any, analyzer: ConversationAnalyzer
    ) -> TicketMessageInput:
        """
        Analyze the raw record and return the fold input.

        Raises AnalysisError (or a subclass) when the analysis fails; callers must
        not fold anything in that case.
        """
        conversation = self.build_conversation(raw)
        analysis = await analyzer.analyze(conversation, self.analysis_context(raw))
        agent_analysis: Optional[AgentReplyAnalysis] = None
        if self.wants_agent_analysis(raw, analysis):
            customer = analysis.customer_analysis
            agent_analysis = await analyzer.analyze_agent_reply(
                analysis.agent_reply_text,
                {
                    "customerText": customer.text,
                    "customerRootCausePrimary": customer.root_cause_primary,
                    "customerSentiment": customer.sentiment.value,
                    "replacementRequested": customer.replacement_requested,
                    "troubleshootingApplied": customer.troubleshooting_applied,
                    "totalReplies": analysis.agent_turns,
                },
            )
        return self.to_input(raw, analysis, agent_analysis)
