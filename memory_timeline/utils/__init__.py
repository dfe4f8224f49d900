"""
Common utilities for the memory timeline cross-reference engine:
logging setup and LLM response JSON extraction.
"""

from memory_timeline.utils.json_parser import extract_json_from_llm_response
from memory_timeline.utils.logger import setup_logger

__all__ = [
    "extract_json_from_llm_response",
    "setup_logger",
]
