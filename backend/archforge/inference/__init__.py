from archforge.inference.base import LLMClient
from archforge.inference.chat_completions_client import ChatCompletionsClient
from archforge.inference.config import get_llm_client

__all__ = ["LLMClient", "ChatCompletionsClient", "get_llm_client"]
