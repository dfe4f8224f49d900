"""
JSON parsing utilities for extracting structured data from LLM responses.

Handles JSON embedded in markdown code blocks or surrounded by prose.
"""

import json
import re
from typing import Any

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]+?)\s*```")


def extract_json_from_llm_response(text: str) -> Any | None:
    """
    Return the first well-formed JSON object found in an LLM response.

    A fenced ```json block is preferred when present. Otherwise every `{` in the
    text is tried as a starting point, so leading chatter and trailing
    commentary are ignored. Returns None when no object decodes.
    """
    if not text or not text.strip():
        return None

    candidates = []
    match = _FENCED_BLOCK.search(text)
    if match:
        candidates.append(match.group(1).strip())
    candidates.append(text)

    decoder = json.JSONDecoder()
    for candidate in candidates:
        start = candidate.find("{")
        while start != -1:
            try:
                obj, _ = decoder.raw_decode(candidate, start)
            except json.JSONDecodeError:
                start = candidate.find("{", start + 1)
                continue
            if isinstance(obj, dict):
                return obj
            start = candidate.find("{", start + 1)

    return None
