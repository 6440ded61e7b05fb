"""Question answering over a caller-supplied analysis context.

The service keeps no session: every question arrives with the
``{textExtraction, analysis}`` bundle produced by /upload.
"""
import json
import logging
from typing import Any, Dict, Optional

import pydantic
from openai import OpenAI

import config
from errors import InvalidContextError, MissingFieldError
from llm_module import chat_completion
from schemas import AnswerResult

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "Not available"
FALLBACK_PREFIX = "I couldn't format the answer properly, but here's the raw response: "
FALLBACK_SUGGESTION = "Try asking a more specific question"


def require_question(question: Optional[str], context: Any) -> None:
    if not question or not context:
        raise MissingFieldError()


def check_context_shape(context: Any) -> None:
    """Shallow check: both sub-objects must be present. Contents are not validated."""
    if not isinstance(context, dict):
        raise InvalidContextError()
    if not isinstance(context.get("textExtraction"), dict) or not isinstance(context.get("analysis"), dict):
        logger.error("Invalid analysis context structure: %s", json.dumps(context, default=str)[:1000])
        raise InvalidContextError()


def _or_na(value: Any) -> Any:
    return value if value else NOT_AVAILABLE


def _join_topics(topics: Any) -> str:
    return ", ".join(str(t) for t in topics)


def build_chat_prompt(context: Dict[str, Any]) -> str:
    text = context["textExtraction"]
    analysis = context["analysis"]
    return (
        "You are a helpful assistant analyzing text. You have access to the following analysis context:\n"
        f"- Extracted Text: {text['raw']}\n"
        f"- Summary: {analysis['summary']}\n"
        f"- Sentiment: {analysis['sentiment']}\n"
        f"- Topics: {_join_topics(analysis['topics'])}\n"
        f"- Language: {analysis['language']}\n\n"
        "Provide concise, specific answers based on this analysis."
    )


def build_ask_prompt(context: Dict[str, Any]) -> str:
    text = context["textExtraction"]
    analysis = context["analysis"]
    topics = analysis.get("topics")
    return (
        "You are an expert text analyzer providing detailed insights.\n"
        "Context of the analyzed text:\n"
        f"- Full Text: {_or_na(text.get('raw'))}\n"
        f"- Summary: {_or_na(analysis.get('summary'))}\n"
        f"- Sentiment: {_or_na(analysis.get('sentiment'))}\n"
        f"- Topics: {_join_topics(topics) if topics else NOT_AVAILABLE}\n"
        f"- Language: {_or_na(analysis.get('language'))}\n"
        f"- Word Count: {_or_na(text.get('wordCount'))}\n"
        f"- Character Count: {_or_na(text.get('characterCount'))}\n\n"
        "Provide a detailed response in JSON format with the following structure:\n"
        "{\n"
        '  "answer": "Your main answer to the question",\n'
        '  "evidence": ["Relevant quotes or examples from the text"],\n'
        '  "confidence": "High/Medium/Low based on available information",\n'
        '  "relatedTopics": ["Related topics from the analysis"],\n'
        '  "suggestions": ["Optional suggestions for follow-up questions"]\n'
        "}\n\n"
        "You must respond with valid JSON that matches this structure.\n"
        "Base your analysis on the provided context and be specific in your responses."
    )


def fallback_answer(raw_reply: str) -> AnswerResult:
    return AnswerResult(
        answer=FALLBACK_PREFIX + raw_reply[: config.ANSWER_FALLBACK_CHARS] + "...",
        evidence=[],
        confidence="Low",
        related_topics=[],
        suggestions=[FALLBACK_SUGGESTION],
    )


def parse_answer(raw_reply: str) -> AnswerResult:
    """Parse the structured answer, degrading instead of failing."""
    try:
        data = json.loads(raw_reply)
        if not isinstance(data, dict):
            raise ValueError("Expected a JSON object")
        return AnswerResult.model_validate(data)
    except (ValueError, pydantic.ValidationError) as e:
        logger.warning("Unparseable answer, returning degraded result: %s", e)
        logger.debug("Original response: %s", raw_reply)
        return fallback_answer(raw_reply)


def chat(client: OpenAI, question: Optional[str], context: Any) -> str:
    require_question(question, context)
    messages = [
        {"role": "system", "content": build_chat_prompt(context)},
        {"role": "user", "content": question},
    ]
    return chat_completion(client, messages)


def ask(client: OpenAI, question: Optional[str], context: Any) -> AnswerResult:
    require_question(question, context)
    check_context_shape(context)
    logger.info("Processing question: %s", question)
    messages = [
        {"role": "system", "content": build_ask_prompt(context)},
        {"role": "user", "content": question},
    ]
    return parse_answer(chat_completion(client, messages, json_mode=True))
