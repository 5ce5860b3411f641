"""
Name: Backend Response Parser

Responsibilities:
  - Turn a backend payload into a result dict
  - Extract the JSON object embedded in free text
  - Degrade unparseable output to a raw payload instead of failing

Collaborators:
  - application/dispatcher.py, application/fallback.py
  - crosscutting.exceptions.ParseError

Constraints:
  - parse_response never raises; ParseError stays internal
"""

import json
import re
from typing import Any, Dict

from ....crosscutting.exceptions import ParseError
from ....crosscutting.logger import logger

# R: Outermost {...} span of a reply (models often wrap JSON in prose)
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


def decode_json_object(text: str) -> Dict[str, Any]:
    """
    R: Decode a JSON object.

    Raises:
        ParseError: If text is not valid JSON or not an object
    """
    try:
        value = json.loads(text)
    except ValueError as e:
        raise ParseError(f"Failed to parse JSON: {e}", original_error=e) from e
    if not isinstance(value, dict):
        raise ParseError(f"Expected a JSON object, got {type(value).__name__}")
    return value


def parse_response(payload: Any) -> Dict[str, Any]:
    """
    R: Normalize a backend payload to a dict.

    - dict: returned as-is
    - text containing a JSON object: the decoded object
    - text without JSON: {"text": payload}
    - text with broken JSON: {"raw": payload, "parse_error": message}
    - anything else: {"value": payload}
    """
    if isinstance(payload, dict):
        return payload

    if isinstance(payload, str):
        match = _JSON_OBJECT.search(payload)
        if match is None:
            return {"text": payload}
        try:
            return decode_json_object(match.group(0))
        except ParseError as e:
            logger.warning(
                "Backend output is not valid JSON, keeping raw text",
                extra={"error_code": e.error_code, "error": e.message},
            )
            return {"raw": payload, "parse_error": e.message}

    return {"value": payload}
