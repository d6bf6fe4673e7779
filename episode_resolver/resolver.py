"""
Resolution orchestrator.

Runs the tiers in fixed priority order and stops at the first hit:

    NotStarted -> strict -> legacy -> fallback -> Done

No tier is retried and nothing here performs I/O. Supporting a new page
schema means appending a tier to TIERS, not editing an existing one.

Failure reasons:
    missing_data      no script data block was found on the page
    parse_error       the script data is not valid JSON
    resolution_error  the data parsed but no tier located a stream URL

fetch_error is produced by the page fetcher, never by this module, but
shares the same error shape so callers can report all four uniformly.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from .payload import ParseError, parse_payload
from .scoring import match_fallback
from .tiers import match_legacy, match_strict

FETCH_ERROR = 'fetch_error'
MISSING_DATA = 'missing_data'
PARSE_ERROR = 'parse_error'
RESOLUTION_ERROR = 'resolution_error'

# reason -> (stage, recoverable)
ERROR_STAGES = {
    FETCH_ERROR: ('fetch', True),
    MISSING_DATA: ('extract', False),
    PARSE_ERROR: ('parse', False),
    RESOLUTION_ERROR: ('resolve', False),
}


class Tier(str, Enum):
    STRICT = 'strict'
    LEGACY = 'legacy'
    FALLBACK = 'fallback'


TIERS: List[Tuple[Tier, Callable[[Any], Optional[str]]]] = [
    (Tier.STRICT, match_strict),
    (Tier.LEGACY, match_legacy),
    (Tier.FALLBACK, match_fallback),
]


@dataclass
class Resolved:
    """A stream URL located by one of the tiers."""

    url: str
    tier: Tier
    attempted: List[Tier] = field(default_factory=list)

    def __post_init__(self):
        if not isinstance(self.url, str) or not self.url.startswith('http'):
            raise ValueError(f"Resolved URL must start with http: {self.url!r}")

    @property
    def ok(self) -> bool:
        return True


@dataclass
class Unresolved:
    """Why no stream URL could be produced."""

    reason: str
    message: str
    attempted: List[Tier] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return False

    def to_error(self) -> Dict:
        """Render as the {stage, message, recoverable} error used in responses."""
        stage, recoverable = ERROR_STAGES.get(self.reason, ('processing', False))
        return {
            'stage': stage,
            'message': self.message,
            'recoverable': recoverable,
        }


ResolutionResult = Union[Resolved, Unresolved]


def resolve_document(document: Any, tiers=None) -> ResolutionResult:
    """
    Run each tier against an already parsed document.

    Args:
        document: Parsed JSON document
        tiers: Optional (tier, matcher) sequence, defaults to TIERS

    Returns:
        Resolved from the first tier that matched, or Unresolved(resolution_error)
    """
    attempted = []

    for tier, matcher in (tiers if tiers is not None else TIERS):
        attempted.append(tier)
        url = matcher(document)
        if url:
            print(f"Stream URL resolved via {tier.value} tier")
            return Resolved(url=url, tier=tier, attempted=attempted)

    print(f"No stream URL found after tiers: {', '.join(t.value for t in attempted)}")
    return Unresolved(
        reason=RESOLUTION_ERROR,
        message='Could not find a stream URL in the page data',
        attempted=attempted,
    )


def resolve_stream_url(text: Optional[str]) -> ResolutionResult:
    """
    Resolve a playable stream URL from the page's embedded script text.

    Args:
        text: Inner text of the script data block, or None if the page had none

    Returns:
        Resolved or Unresolved; this function does not raise for bad input
    """
    if text is None:
        return Unresolved(
            reason=MISSING_DATA,
            message='Could not find the required data in the page',
        )

    try:
        document = parse_payload(text)
    except ParseError as e:
        print(f"Payload parse failed: {e}")
        return Unresolved(reason=PARSE_ERROR, message=str(e))

    return resolve_document(document)
