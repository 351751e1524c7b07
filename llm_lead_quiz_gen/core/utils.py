import json
from typing import Any


def extract_json_text(text: str) -> str:
    """Return the span from the first '{' to the last '}' of the model output.

    Text without such a pair comes back unchanged so the caller's parse fails.
    """
    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end != -1 and end > start:
        return text[start : end + 1]
    return text


def looks_truncated(text: str) -> bool:
    """Opening brace present but the output does not end with a closing one."""
    return "{" in text and not text.strip().endswith("}")


def parse_json_object(text: str) -> dict[str, Any]:
    data = json.loads(extract_json_text(text))
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")
    return data
