"""Model invocation: prompts, replies and batching."""

from category_diffusion.llm.batcher import BatchOrchestrator
from category_diffusion.llm.client import LLMClient
from category_diffusion.llm.parser import parse_response
from category_diffusion.llm.prompt import build_prompt

__all__ = [
    "BatchOrchestrator",
    "LLMClient",
    "build_prompt",
    "parse_response",
]
