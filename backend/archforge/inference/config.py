from typing import Optional

from archforge import config
from archforge.inference.base import LLMClient
from .chat_completions_client import ChatCompletionsClient


def get_llm_client() -> Optional[LLMClient]:
    """Model access for synthesis, editing and chat, or None without a credential."""
    if not config.OPENAI_API_KEY:
        return None

    return ChatCompletionsClient(
        base_url=config.LLM_BASE_URL,
        model=config.LLM_MODEL,
        api_key=config.OPENAI_API_KEY,
        temperature=config.SYNTHESIS_TEMPERATURE,
        timeout=config.LLM_TIMEOUT,
    )
