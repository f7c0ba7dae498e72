"""
AI analysis of support conversations.

Turns raw conversation text into a structured customer analysis (and an agent
reply QA record) using a pydantic-ai Agent served through LiteLLM. Failures
raise; nothing here ever returns a placeholder analysis.
"""

from __future__ import annotations

import asyncio
import json
import re
from dataclasses import dataclass
from typing import Any, List, Optional

from pydantic import BaseModel, Field
from pydantic_ai import Agent
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.litellm import LiteLLMProvider

from app.config import get_settings
from app.constants.taxonomy import (
    AGENT_NEGATIVE_THEMES,
    AGENT_POSITIVE_THEMES,
    CUSTOMER_PAIN_POINTS,
    PRODUCTS,
    ROOT_CAUSES,
    STANDARD_NEGATIVES,
    STANDARD_POSITIVES,
    Product,
    detect_product,
    filter_known,
    get_product_by_id,
    known_root_cause,
    mentions_product,
)
from app.exceptions import AnalysisError, AnalysisTimeoutError, NoRelevantContentError
from app.infra.logging_config import get_logger
from app.schemas.ticket import (
    AgentReplyAnalysis,
    CustomerAnalysis,
    Sentiment,
    Severity,
    TicketStatus,
)

logger = get_logger("analysis")

CUSTOMER_PREFIX = re.compile(r"^(customer:|عميل:)", re.IGNORECASE)
AGENT_PREFIX = re.compile(r"^(agent:|وكيل:|موظف:)", re.IGNORECASE)

CUSTOMER_SYSTEM_PROMPT = """You are an expert customer support analyst.
Analyze every customer message in the conversation and every agent reply.

Available products: {products}

Return:
- customer: the combined analysis of all customer messages. root_cause_primary
  must be one of: {root_causes}. positive_tags from: {positives}.
  negative_tags from: {negatives}. pain_point_tags from: {pain_points}.
- agent_combined_text: all agent replies concatenated, nothing dropped.
- detected_product_id: one of {product_ids}, or null.
"""

AGENT_SYSTEM_PROMPT = """You are a strict QA coach for customer support.
Evaluate the agent replies of a multi-turn conversation for empathy, problem
understanding, solution quality, clarity, next steps, policy and
personalization. Score overall quality 0-100.
positive_themes from: {positive_themes}. negative_themes from: {negative_themes}.
"""


class CustomerSideOutput(BaseModel):
    """Structured output requested from the model for the customer side."""

    customer_text: str = ""
    root_cause_primary: str = "Uncategorized"
    root_cause_secondary: str = ""
    sentiment: Sentiment = Sentiment.NEUTRAL
    severity: Severity = Severity.NORMAL
    suggested_status: TicketStatus = TicketStatus.OPEN
    summary: str = ""
    positives: List[str] = Field(default_factory=list)
    negative_points: List[str] = Field(default_factory=list)
    pain_points: List[str] = Field(default_factory=list)
    positive_tags: List[str] = Field(default_factory=list)
    negative_tags: List[str] = Field(default_factory=list)
    pain_point_tags: List[str] = Field(default_factory=list)
    replacement_requested: bool = False
    troubleshooting_applied: bool = False


class ConversationOutput(BaseModel):
    customer: CustomerSideOutput
    agent_combined_text: str = ""
    detected_product_id: Optional[str] = None


@dataclass(frozen=True)
class ChatTurns:
    customer: List[str]
    agent: List[str]


@dataclass(frozen=True)
class AnalysisResult:
    customer_analysis: CustomerAnalysis
    agent_reply_text: str
    detected_product: Optional[Product]
    customer_turns: int
    agent_turns: int


def parse_chat_turns(chat_conversation: str) -> ChatTurns:
    """Split 'Customer: ...' / 'Agent: ...' lines; unprefixed lines are ignored."""
    customer: List[str] = []
    agent: List[str] = []
    for line in (chat_conversation or "").split("\n"):
        stripped = line.strip()
        if not stripped:
            continue
        if CUSTOMER_PREFIX.match(stripped):
            customer.append(CUSTOMER_PREFIX.sub("", stripped, count=1).strip())
        elif AGENT_PREFIX.match(stripped):
            agent.append(AGENT_PREFIX.sub("", stripped, count=1).strip())
    return ChatTurns(customer=customer, agent=agent)


def _to_customer_analysis(out: CustomerSideOutput) -> CustomerAnalysis:
    """Clamp model output to the closed vocabularies."""
    return CustomerAnalysis(
        text=out.customer_text,
        root_cause_primary=known_root_cause(out.root_cause_primary),
        root_cause_secondary=out.root_cause_secondary or "",
        sentiment=out.sentiment,
        severity=out.severity,
        suggested_status=out.suggested_status,
        summary=out.summary,
        positives=list(out.positives),
        negative_points=list(out.negative_points),
        pain_points=list(out.pain_points),
        positive_tags=filter_known(out.positive_tags, STANDARD_POSITIVES),
        negative_tags=filter_known(out.negative_tags, STANDARD_NEGATIVES),
        pain_point_tags=filter_known(out.pain_point_tags, CUSTOMER_PAIN_POINTS),
        replacement_requested=out.replacement_requested,
        troubleshooting_applied=out.troubleshooting_applied,
    )


def _clamp_agent_analysis(out: AgentReplyAnalysis) -> AgentReplyAnalysis:
    return out.model_copy(
        update={
            "positive_themes": filter_known(out.positive_themes, AGENT_POSITIVE_THEMES),
            "negative_themes": filter_known(out.negative_themes, AGENT_NEGATIVE_THEMES),
        }
    )


def _build_model(
    model_name: str, api_key: Optional[str], api_base: Optional[str]
) -> OpenAIChatModel:
    provider = LiteLLMProvider(api_key=api_key, api_base=api_base)
    return OpenAIChatModel(model_name, provider=provider)


class ConversationAnalyzer:
    """Runs the customer and agent-reply analyses with a per-call timeout."""

    def __init__(
        self,
        model_name: str,
        api_key: Optional[str] = None,
        api_base: Optional[str] = None,
        timeout_seconds: float = 60.0,
        customer_agent: Optional[Agent] = None,
        reply_agent: Optional[Agent] = None,
    ) -> None:
        self._timeout = timeout_seconds
        model: Optional[OpenAIChatModel] = None
        if customer_agent is None or reply_agent is None:
            logger.info(f"Initializing analysis agents with model {model_name}")
            model = _build_model(model_name, api_key, api_base)
        self._customer_agent = customer_agent or Agent(
            model,
            output_type=ConversationOutput,
            system_prompt=CUSTOMER_SYSTEM_PROMPT.format(
                products=", ".join(
                    f"{p.name} (ID: {p.id}, Amazon: {p.amazon_id})" for p in PRODUCTS
                ),
                root_causes=", ".join(ROOT_CAUSES),
                positives=", ".join(STANDARD_POSITIVES),
                negatives=", ".join(STANDARD_NEGATIVES),
                pain_points=", ".join(CUSTOMER_PAIN_POINTS),
                product_ids=", ".join(p.id for p in PRODUCTS),
            ),
        )
        self._reply_agent = reply_agent or Agent(
            model,
            output_type=AgentReplyAnalysis,
            system_prompt=AGENT_SYSTEM_PROMPT.format(
                positive_themes=", ".join(AGENT_POSITIVE_THEMES),
                negative_themes=", ".join(AGENT_NEGATIVE_THEMES),
            ),
        )

    async def analyze(
        self,
        chat_conversation: str,
        context: Optional[dict[str, Any]] = None,
    ) -> AnalysisResult:
        """Analyze the whole conversation. Raises AnalysisError on any failure."""
        if not mentions_product(chat_conversation):
            raise NoRelevantContentError("No product-related content found")

        turns = parse_chat_turns(chat_conversation)
        safe_context = {
            "productName": (context or {}).get("productName") or "",
            "productAmazonId": (context or {}).get("productAmazonId") or "",
            "orderId": (context or {}).get("orderId") or "",
        }
        prompt = (
            f'Full chat conversation:\n"""{chat_conversation}"""\n\n'
            f"Context:\n{json.dumps(safe_context)}\n\n"
            f"Chat Structure: {len(turns.customer)} customer messages, "
            f"{len(turns.agent)} agent replies"
        )
        output: ConversationOutput = await self._run(self._customer_agent, prompt)
        analysis = _to_customer_analysis(output.customer)
        if not analysis.text.strip():
            raise NoRelevantContentError("Analysis returned no customer text")
        return AnalysisResult(
            customer_analysis=analysis,
            agent_reply_text=output.agent_combined_text or "",
            detected_product=get_product_by_id(output.detected_product_id)
            or detect_product(chat_conversation),
            customer_turns=len(turns.customer),
            agent_turns=len(turns.agent),
        )

    async def analyze_agent_reply(
        self,
        reply_text: str,
        context: Optional[dict[str, Any]] = None,
    ) -> AgentReplyAnalysis:
        safe_context = {
            "customerText": (context or {}).get("customerText") or "",
            "customerRootCausePrimary": (context or {}).get("customerRootCausePrimary")
            or "",
            "customerSentiment": (context or {}).get("customerSentiment") or "",
            "replacementRequested": bool((context or {}).get("replacementRequested")),
            "troubleshootingApplied": bool(
                (context or {}).get("troubleshootingApplied")
            ),
            "totalReplies": (context or {}).get("totalReplies") or 1,
        }
        prompt = (
            f'Customer message:\n"""{safe_context["customerText"]}"""\n\n'
            f'Agent replies ({safe_context["totalReplies"]} total):\n"""{reply_text}"""\n\n'
            f"Context:\n{json.dumps(safe_context)}"
        )
        output: AgentReplyAnalysis = await self._run(self._reply_agent, prompt)
        return _clamp_agent_analysis(output)

    async def _run(self, agent: Agent, prompt: str) -> Any:
        try:
            result = await asyncio.wait_for(agent.run(prompt), timeout=self._timeout)
        except asyncio.TimeoutError as e:
            logger.warning("Analysis call timed out after %ss", self._timeout)
            raise AnalysisTimeoutError(
                f"Analysis timed out after {self._timeout}s"
            ) from e
        except Exception as e:
            logger.error("Analysis call failed: %s", e)
            raise AnalysisError(f"Analysis call failed: {e}") from e
        if result is None or result.output is None:
            raise AnalysisError("Analysis returned no output")
        return result.output


def build_analyzer_from_env() -> ConversationAnalyzer:
    settings = get_settings()
    logger.info(
        "Analysis config: model=%s, api_key=%s, api_base=%s",
        settings.llm_model,
        "set" if settings.litellm_api_key else "not set",
        settings.litellm_api_base or "(default)",
    )
    if not settings.litellm_api_key:
        logger.warning(
            "LITELLM_API_KEY is not set; set it to a valid OpenAI or LiteLLM API key to avoid 401 errors."
        )
    return ConversationAnalyzer(
        model_name=settings.llm_model,
        api_key=settings.litellm_api_key,
        api_base=settings.litellm_api_base,
        timeout_seconds=settings.analysis_timeout_seconds,
    )
