"""Structured analysis of extracted text."""
import json
import logging

import pydantic
from openai import OpenAI

from errors import ModelResponseParseError
from llm_module import chat_completion
from schemas import AnalysisResult, utc_timestamp

logger = logging.getLogger(__name__)

ANALYSIS_SYSTEM_PROMPT = (
    "You are an expert text analyzer. Analyze the provided text and return a JSON "
    "response with the following structure:\n"
    "{\n"
    '  "summary": "A brief summary of the text",\n'
    '  "keyPoints": ["Array of key points extracted"],\n'
    '  "sentiment": "Overall sentiment (positive/negative/neutral)",\n'
    '  "topics": ["Main topics identified"],\n'
    '  "language": "Primary language detected",\n'
    '  "confidence": "High/Medium/Low based on text clarity"\n'
    "}"
)


def build_analysis_messages(raw_text: str):
    return [
        {"role": "system", "content": ANALYSIS_SYSTEM_PROMPT},
        {"role": "user", "content": raw_text},
    ]


def parse_analysis(content: str) -> AnalysisResult:
    """Parse the model reply and stamp the server timestamp.

    Unlike ``qa_module.parse_answer`` there is no fallback here: a reply that
    is not the expected JSON object fails the whole upload.
    """
    try:
        data = json.loads(content)
    except ValueError as e:
        raise ModelResponseParseError(details=str(e)) from e
    if not isinstance(data, dict):
        raise ModelResponseParseError("Model response was not a JSON object", details=type(data).__name__)

    data.pop("timestamp", None)
    try:
        return AnalysisResult.model_validate({**data, "timestamp": utc_timestamp()})
    except pydantic.ValidationError as e:
        raise ModelResponseParseError("Model response did not match the analysis format", details=str(e)) from e


def generate_analysis(client: OpenAI, raw_text: str) -> AnalysisResult:
    logger.info("Starting OpenAI analysis...")
    content = chat_completion(client, build_analysis_messages(raw_text), json_mode=True)
    return parse_analysis(content)
