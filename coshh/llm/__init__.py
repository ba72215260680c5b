# coshh/llm/__init__.py
from .client import LLMClient, OpenAILLMClient, clean_json_from_llm

__all__ = ["LLMClient", "OpenAILLMClient", "clean_json_from_llm"]
