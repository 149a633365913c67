"""
Model Gateway: the four generative-model operations used by the review pipeline.

Each operation sends a fixed prompt through a LangChain chat model, bounds the
round-trip with a timeout and validates the JSON reply. Failures surface as
ModelGatewayError, except document extraction which falls back to the data it
was given.
"""

from typing import Any, Dict, List, Optional, Type, TypeVar
import asyncio
import json
import logging
import re

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from langsmith import traceable
from pydantic import BaseModel, ValidationError

from common.config import MODEL_NAME, MODEL_TEMPERATURE, MODEL_TIMEOUT_SECONDS
from common.enums import ClaimDecisionType
from services.ai import prompts
from services.ai.schemas import ClaimDecision, EmailDraft, InconsistencyReport

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


class ModelGatewayError(Exception):
    """Raised when a model call times out, fails or returns unusable output."""

    pass


def strip_code_fences(content: str) -> str:
    content = content.strip()
    if content.startswith("```"):
        content = re.sub(r"^```\w*\n?", "", content)
        content = re.sub(r"\n?```\s*$", "", content)
    return content.strip()


def _message_text(response: Any) -> str:
    content = response.content if hasattr(response, "content") else response
    if isinstance(content, list):
        # Multi-part replies: keep the text parts only
        parts = [
            part.get("text", "") if isinstance(part, dict) else str(part)
            for part in content
        ]
        return "".join(parts)
    return "" if content is None else str(content)


class ModelGateway:
    """Async request/response wrapper around the chat model. Holds no review state."""

    def __init__(self, llm: Optional[BaseChatModel] = None, timeout: float = MODEL_TIMEOUT_SECONDS):
        self._llm = llm
        self.timeout = timeout

    @property
    def llm(self) -> BaseChatModel:
        if self._llm is None:
            self._llm = ChatOpenAI(model=MODEL_NAME, temperature=MODEL_TEMPERATURE)
        return self._llm

    async def _complete(self, operation: str, messages: List[BaseMessage]) -> str:
        """Run one model round-trip and return the raw text reply."""
        try:
            response = await asyncio.wait_for(self.llm.ainvoke(messages), timeout=self.timeout)
        except asyncio.TimeoutError:
            raise ModelGatewayError(f"{operation} timed out after {self.timeout:g}s")
        except Exception as e:
            logger.exception(f"{operation} model call failed")
            raise ModelGatewayError(f"{operation} failed: {e}") from e

        text = _message_text(response)
        if not text.strip():
            raise ModelGatewayError(f"{operation} returned no output")
        return text

    @staticmethod
    def _parse_json(operation: str, text: str) -> Any:
        try:
            return json.loads(strip_code_fences(text))
        except json.JSONDecodeError as e:
            raise ModelGatewayError(f"{operation} returned invalid JSON: {e}") from e

    async def _structured(self, operation: str, messages: List[BaseMessage], schema: Type[T]) -> T:
        parsed = self._parse_json(operation, await self._complete(operation, messages))
        if parsed is None:
            raise ModelGatewayError(f"{operation} returned null")
        try:
            return schema.model_validate(parsed)
        except ValidationError as e:
            raise ModelGatewayError(f"{operation} returned an unexpected shape: {e}") from e

    @traceable(name="model_gateway_extract_and_fill")
    async def extract_and_fill(self, document_uri: str, current_fields: Dict[str, Any]) -> Dict[str, Any]:
        """
        Extract claim data from a document and fill it into the current fields.

        Never raises for model problems: a failed call, null reply or unparseable
        JSON returns ``current_fields`` unchanged.
        """
        messages = [
            SystemMessage(content=prompts.EXTRACTION_SYSTEM_PROMPT),
            HumanMessage(content=[
                {
                    "type": "text",
                    "text": prompts.EXTRACTION_USER_TEMPLATE.format(
                        current_claim_json=json.dumps(current_fields, indent=2)
                    ),
                },
                {"type": "image_url", "image_url": {"url": document_uri}},
            ]),
        ]

        try:
            parsed = self._parse_json("extract_and_fill", await self._complete("extract_and_fill", messages))
            # Some models double-encode the object as a JSON string
            if isinstance(parsed, str):
                parsed = self._parse_json("extract_and_fill", parsed)
        except ModelGatewayError as e:
            logger.warning(f"Extraction produced no usable data, keeping current fields: {e}")
            return dict(current_fields)

        if not isinstance(parsed, dict):
            logger.warning(f"Extraction returned {type(parsed).__name__}, keeping current fields")
            return dict(current_fields)
        return parsed

    @traceable(name="model_gateway_highlight_inconsistencies")
    async def highlight_inconsistencies(self, claim_json: str, rules_json: str) -> InconsistencyReport:
        """Ask the model for inconsistencies between a claim and the rule set."""
        messages = [
            SystemMessage(content=prompts.INCONSISTENCY_SYSTEM_PROMPT),
            HumanMessage(content=prompts.INCONSISTENCY_USER_TEMPLATE.format(
                claim_json=claim_json, rules_json=rules_json,
            )),
        ]
        return await self._structured("highlight_inconsistencies", messages, InconsistencyReport)

    @traceable(name="model_gateway_generate_summary")
    async def generate_summary(
        self,
        claim_amount: float,
        settlement_amount: float,
        is_eligible: bool,
        reason: str,
    ) -> ClaimDecision:
        """Generate the Approved/Rejected decision and a short summary.

        The decision always follows ``is_eligible``.
        """
        messages = [
            SystemMessage(content=prompts.SUMMARY_SYSTEM_PROMPT),
            HumanMessage(content=prompts.SUMMARY_USER_TEMPLATE.format(
                claim_amount=claim_amount,
                settlement_amount=settlement_amount,
                is_eligible=str(is_eligible).lower(),
                reason=reason,
            )),
        ]
        result = await self._structured("generate_summary", messages, ClaimDecision)

        expected = ClaimDecisionType.APPROVED if is_eligible else ClaimDecisionType.REJECTED
        if result.decision != expected:
            logger.warning(
                f"Model decided {result.decision.value} but eligibility is {is_eligible}; "
                f"using {expected.value}"
            )
            result = ClaimDecision(decision=expected, summary=result.summary)
        return result

    @traceable(name="model_gateway_generate_email")
    async def generate_email(self, claim_id: str, claimant_name: str, missing_items: List[str]) -> EmailDraft:
        """Draft an email asking the claimant for the missing items."""
        messages = [
            SystemMessage(content=prompts.EMAIL_SYSTEM_PROMPT),
            HumanMessage(content=prompts.EMAIL_USER_TEMPLATE.format(
                claim_id=claim_id,
                claimant_name=claimant_name,
                missing_items="\n".join(f"- {item}" for item in missing_items),
            )),
        ]
        return await self._structured("generate_email", messages, EmailDraft)
