"""Stream URL resolution for Apple Podcasts episode pages."""

from .payload import ParseError, parse_payload

from .tree import (
    Signature,
    STREAM_URL_PATHS,
    extract_stream_url,
    walk_breadth_first,
)

from .tiers import (
    STRICT_SIGNATURE,
    LEGACY_SIGNATURE,
    find_signature_node,
    match_strict,
    page_data_subtrees,
    match_legacy,
)

from .scoring import (
    Candidate,
    score_candidate,
    collect_candidates,
    rank_candidates,
    match_fallback,
)

from .resolver import (
    FETCH_ERROR,
    MISSING_DATA,
    PARSE_ERROR,
    RESOLUTION_ERROR,
    Tier,
    TIERS,
    Resolved,
    Unresolved,
    resolve_document,
    resolve_stream_url,
)

from .episode_utils import (
    MAX_TITLE_LENGTH,
    truncate_title,
    sanitize_title,
    clean_episode_title,
    parse_iso_duration,
    validate_transcription,
)

__all__ = [
    # Parsing
    'ParseError',
    'parse_payload',
    # Tree helpers
    'Signature',
    'STREAM_URL_PATHS',
    'extract_stream_url',
    'walk_breadth_first',
    # Signature tiers
    'STRICT_SIGNATURE',
    'LEGACY_SIGNATURE',
    'find_signature_node',
    'match_strict',
    'page_data_subtrees',
    'match_legacy',
    # Fallback scoring
    'Candidate',
    'score_candidate',
    'collect_candidates',
    'rank_candidates',
    'match_fallback',
    # Orchestration
    'FETCH_ERROR',
    'MISSING_DATA',
    'PARSE_ERROR',
    'RESOLUTION_ERROR',
    'Tier',
    'TIERS',
    'Resolved',
    'Unresolved',
    'resolve_document',
    'resolve_stream_url',
    # Episode utilities
    'MAX_TITLE_LENGTH',
    'truncate_title',
    'sanitize_title',
    'clean_episode_title',
    'parse_iso_duration',
    'validate_transcription',
]
