import json
import re
from typing import Any, Dict

_FENCE = re.compile(r"```[a-zA-Z0-9_-]*\s*(.*?)\s*```", re.DOTALL)


def _unfence(text: str) -> str:
    # prefer the first fenced block if the model wrapped its answer
    m = _FENCE.search(text)
    return m.group(1).strip() if m else text.strip()


def extract_json_object(text: str) -> Dict[str, Any]:
    """
    Pull the first JSON object out of a model reply and parse it.
    Tolerates code fences, leading prose and trailing garbage after the last brace.
    Raises ValueError when no object can be recovered.
    """
    candidate = _unfence(text or "")
    start = candidate.find("{")
    if start == -1:
        raise ValueError("No JSON object found in text")
    candidate = candidate[start:]

    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError:
        end = candidate.rfind("}")
        if end == -1:
            raise ValueError("Unterminated JSON object in text")
        try:
            parsed = json.loads(candidate[: end + 1])
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON object: {e}") from e

    if not isinstance(parsed, dict):
        raise ValueError(f"JSON is not an object (got {type(parsed).__name__})")
    return parsed
