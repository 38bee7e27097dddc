"""
Tolerant JSON extraction from model output.

Even with ``response_mime_type: application/json`` the model occasionally
wraps its answer in a markdown fence or adds a sentence around it.
"""
import json
import logging
from typing import Any, Dict, Type

from workbench.errors import MalformedUpstreamJSON

logger = logging.getLogger(__name__)


def _strip_code_fence(text: str) -> str:
    if not text.startswith("```"):
        return text
    lines = text.split("\n")
    # Remove first line (```json or ```) and last line (```)
    lines = lines[1:]
    if lines and lines[-1].strip() == "```":
        lines = lines[:-1]
    return "\n".join(lines).strip()


def parse_model_json(
    raw_text: str,
    error_cls: Type[MalformedUpstreamJSON] = MalformedUpstreamJSON,
    message_key: str = "",
) -> Dict[str, Any]:
    """
    Parse a JSON object out of ``raw_text``.

    Falls back to the outermost ``{...}`` span when the text has prose
    around the object. Raises ``error_cls`` when nothing parses or the
    top-level value is not an object.
    """
    text = _strip_code_fence((raw_text or "").strip())

    try:
        data = json.loads(text)
    except (json.JSONDecodeError, RecursionError) as first_error:
        start = text.find("{")
        end = text.rfind("}")
        if start == -1 or end <= start:
            logger.error(f"Model output is not JSON: {text[:200]!r}")
            raise error_cls(message_key or None, detail=str(first_error)) from first_error
        try:
            data = json.loads(text[start:end + 1])
        except (json.JSONDecodeError, RecursionError) as e:
            logger.error(f"Model output is not JSON: {text[:200]!r}")
            raise error_cls(message_key or None, detail=str(e)) from e

    if not isinstance(data, dict):
        raise error_cls(message_key or None, detail=f"expected a JSON object, got {type(data).__name__}")
    return data
