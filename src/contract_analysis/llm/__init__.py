"""Language model access for the Contract Analysis Agent."""

from .json_extraction import extract_json_object, find_json_object
from .ollama_client import OllamaClient
from .prompts import build_analysis_prompt, build_report_prompt

__all__ = [
    "OllamaClient",
    "extract_json_object",
    "find_json_object",
    "build_analysis_prompt",
    "build_report_prompt",
]
