"""
LangChain Adapter

Encapsulates all LangChain logic for the diagnosis agent.
Exposes simple Python types only - NO LangChain objects leak out.

DESIGN RULES (LOCK THIS IN):
- LangChain stays INSIDE this module
- Only agents may use this adapter
- No LangChain imports in: API, Scheduler, Generator, Clients
- Returns (str, dict) tuple only - no LangChain types
"""

import time
from typing import Dict, Any, Tuple

from langchain_openai import AzureChatOpenAI
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_community.callbacks import get_openai_callback

from app.core.config import settings


def _get_llm() -> AzureChatOpenAI:
    """Get configured AzureChatOpenAI instance."""
    return AzureChatOpenAI(
        azure_deployment=settings.azure_openai_deployment_name,
        openai_api_version=settings.azure_openai_api_version,
        azure_endpoint=settings.azure_openai_endpoint,
        api_key=settings.azure_openai_api_key,
        temperature=settings.diagnosis_temperature,
    )


async def agenerate(prompt: str, system_prompt: str | None = None) -> Tuple[str, Dict[str, Any]]:
    """
    Generate a response using LangChain AzureChatOpenAI (async).

    Args:
        prompt: The user's prompt
        system_prompt: Optional system prompt for context

    Returns:
        Tuple of (output_text, metadata)
        - output_text: The LLM response as a string
        - metadata: dict with model, tokens_used, latency_ms

    NO LANGCHAIN TYPES LEAK OUT - only Python primitives.
    """
    llm = _get_llm()
    model = settings.azure_openai_deployment_name

    start_time = time.time()

    messages = []
    if system_prompt:
        messages.append(SystemMessage(content=system_prompt))
    messages.append(HumanMessage(content=prompt))

    # Invoke with callback for token tracking
    with get_openai_callback() as cb:
        response = await llm.ainvoke(messages)
        tokens_used = cb.total_tokens

    latency_ms = int((time.time() - start_time) * 1000)

    output = response.content if hasattr(response, 'content') else str(response)

    metadata = {
        "model": model,
        "tokens_used": tokens_used,
        "latency_ms": latency_ms,
        "provider": "langchain_azure",
    }

    return str(output), metadata
