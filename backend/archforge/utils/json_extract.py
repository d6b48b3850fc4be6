import json
import re

from archforge.ir.errors import JSONExtractionError

_LEADING_FENCE = re.compile(r"^```(?:json|JSON)?\s*")
_TRAILING_FENCE = re.compile(r"\s*```$")


def strip_code_fences(text: str) -> str:
    content = text.strip()
    content = _LEADING_FENCE.sub("", content)
    content = _TRAILING_FENCE.sub("", content)
    return content.strip()


def extract_json(text: str) -> dict:
    """
    Extract the JSON object from LLM output.

    Tolerates markdown code fences and prose around the object: the
    substring from the first '{' to the last '}' is parsed.
    Raises JSONExtractionError when no object can be recovered.
    """
    if not isinstance(text, str) or not text.strip():
        raise JSONExtractionError("Empty model response")

    content = strip_code_fences(text)

    start = content.find("{")
    end = content.rfind("}")
    if start == -1 or end <= start:
        raise JSONExtractionError(f"No JSON object found in model response: {content[:200]!r}")

    try:
        data = json.loads(content[start:end + 1])
    except json.JSONDecodeError as e:
        raise JSONExtractionError(f"Invalid JSON in model response: {e}") from e

    return data
