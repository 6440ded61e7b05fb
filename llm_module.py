"""OpenAI chat-completion access shared by analysis and Q&A."""
import logging
from typing import Dict, List, Optional

import openai
from openai import OpenAI

import config
from errors import LLMTimeoutError, ProcessingError

logger = logging.getLogger(__name__)

Messages = List[Dict[str, str]]


def create_client(api_key: Optional[str] = None) -> OpenAI:
    """Build the process-wide client. Fails fast without a key."""
    key = api_key or config.require_api_key()
    return OpenAI(api_key=key, timeout=config.LLM_TIMEOUT_SECONDS, max_retries=0)


def chat_completion(client: OpenAI, messages: Messages, json_mode: bool = False) -> str:
    """Send ``messages`` and return the first choice's text content."""
    kwargs = {"model": config.OPENAI_MODEL_CHAT, "messages": messages}
    if json_mode:
        kwargs["response_format"] = {"type": "json_object"}

    logger.debug("Sending %d messages to %s (json=%s)", len(messages), config.OPENAI_MODEL_CHAT, json_mode)
    try:
        completion = client.chat.completions.create(**kwargs)
    except openai.APITimeoutError as e:
        raise LLMTimeoutError(details=f"No reply within {config.LLM_TIMEOUT_SECONDS}s") from e
    except openai.OpenAIError as e:
        raise ProcessingError("Error calling OpenAI API", details=str(e)) from e

    return completion.choices[0].message.content or ""
