"""
Diagnosis Agent

Asks an LLM to explain a transaction trace to an IdP operator.
Uses LangChain internally via the langchain_adapter.

DESIGN RULE: analyze() never raises. Any failure becomes FALLBACK_MESSAGE.
"""

import logging
from typing import Awaitable, Callable, Dict, Any, Optional, Tuple

from agents.base import BaseAgent
from llm.langchain_adapter import agenerate
from schemas.trace import RequestLog

logger = logging.getLogger(__name__)

Generate = Callable[[str, Optional[str]], Awaitable[Tuple[str, Dict[str, Any]]]]


class DiagnosisAgent(BaseAgent):
    """
    Root-cause analysis for a single RequestLog.
    """

    AGENT_NAME = "diagnosis_agent"

    EMPTY_MESSAGE = "Unable to generate a diagnosis."
    FALLBACK_MESSAGE = "AI diagnosis is temporarily unavailable. Check the network or the API key settings."

    def __init__(self, generate: Optional[Generate] = None):
        """
        Initialize the DiagnosisAgent.

        Args:
            generate: Async text generator; defaults to the LangChain adapter.
        """
        super().__init__(self.AGENT_NAME)
        self._generate = generate or agenerate

    @staticmethod
    def build_prompt(record: RequestLog) -> str:
        """Render the trace as plain text for the model."""
        steps = "\n".join(
            f"- [{step.status.value}] {step.name}: {step.details}" for step in record.steps
        )
        raw_logs = "\n".join(record.raw_logs)
        return (
            f"Transaction ID: {record.id}\n"
            f"SP Entity: {record.sp_entity_id}\n"
            f"User: {record.user_principal}\n"
            f"Status: {record.status.value}\n"
            f"\n"
            f"Trace Steps:\n{steps}\n"
            f"\n"
            f"Raw Logs:\n{raw_logs}\n"
            f"\n"
            f"Audit Log:\n{record.audit_log}"
        )

    async def analyze(self, record: RequestLog) -> str:
        try:
            output, metadata = await self._generate(self.build_prompt(record), self.prompt_config)
        except Exception as e:
            logger.error(f"Diagnosis failed for {record.id}: {e}")
            return self.FALLBACK_MESSAGE

        logger.info(f"Diagnosis for {record.id} generated: {metadata}")
        return output or self.EMPTY_MESSAGE
