"""
Payload parsing for the embedded page data block.

The text handed over by the page extractor is presumed to be one JSON
document. Parsing is purely syntactic: any well-formed JSON value is
accepted, whether or not it resembles an episode page.

The bare constants NaN, Infinity and -Infinity are not JSON and are
rejected. Documents nested deeper than the interpreter's recursion limit
cannot be decoded and are reported as a nesting-depth ParseError.
"""

import json
from typing import Any


class ParseError(ValueError):
    """Raised when the extracted text is not a valid JSON document."""


def _reject_constant(name: str) -> Any:
    raise ParseError(f"Invalid JSON payload: {name} is not a JSON value")


def parse_payload(text: str) -> Any:
    """
    Parse raw script text into a generic document tree.

    Args:
        text: Inner text of the embedded data block

    Returns:
        The decoded document (dict, list, str, number, bool or None)

    Raises:
        ParseError: If the text is missing, blank or not valid JSON
    """
    if not isinstance(text, (str, bytes, bytearray)):
        raise ParseError(f"Expected text payload, got {type(text).__name__}")

    if not text.strip():
        raise ParseError("Payload is empty")

    try:
        return json.loads(text, parse_constant=_reject_constant)
    except RecursionError as e:
        raise ParseError("Payload exceeds the supported nesting depth") from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ParseError(f"Invalid JSON payload: {e}") from e
