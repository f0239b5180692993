"""LLM client utilities for pdfsheet."""

import re
from typing import Optional

import httpx
import requests
from openai import AsyncOpenAI


def strip_think_tags(text: str) -> str:
    """Remove <think>...</think> tags from LLM output.

    Some models (like Qwen3) include thinking/reasoning in <think> tags.
    This function removes them for cleaner output.

    Args:
        text: Text that may contain <think> tags

    Returns:
        Text with <think> tags and their content removed
    """
    if not text:
        return text
    return re.sub(r"<think>.*?</think>\s*", "", text, flags=re.DOTALL).strip()


def get_vision_client(
    base_url: str,
    api_key: str = "",
    timeout: float = 300.0,
) -> AsyncOpenAI:
    """Get async OpenAI client for the vision LLM server.

    Works with any OpenAI-compatible endpoint (Groq, OpenRouter, llama.cpp).
    Local servers accept any key, so a placeholder is sent when none is set.

    Args:
        base_url: API base URL (e.g., "https://api.groq.com/openai/v1")
        api_key: API key (optional for local servers)
        timeout: Read timeout for a single page, in seconds
    """
    return AsyncOpenAI(
        base_url=base_url,
        api_key=api_key or "not-needed",
        timeout=httpx.Timeout(connect=30.0, read=timeout, write=120.0, pool=60.0),
        max_retries=0,
    )


def check_llm_health(base_url: str, api_key: Optional[str] = None) -> bool:
    """Check if the vision LLM server is reachable.

    Args:
        base_url: OpenAI-compatible API base URL

    Returns:
        True if the models listing responds with 200
    """
    headers = {}
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"
    try:
        response = requests.get(f"{base_url.rstrip('/')}/models", headers=headers, timeout=5)
        return response.status_code == 200
    except requests.exceptions.RequestException:
        return False
