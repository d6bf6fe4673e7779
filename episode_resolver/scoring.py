"""
Schema-agnostic fallback: collect every streamUrl field and rank them.

Scores are a pure function of a candidate's path and URL, so the winner
does not depend on key order within the page data. The weights below
are fixed; which URL wins downstream depends on their exact values.
"""

import re
from dataclasses import dataclass
from typing import Any, List, Optional

from .tree import is_stream_url, walk_breadth_first

STREAM_URL_KEY = 'streamUrl'

# (substring of the lowercased path, points)
PATH_WEIGHTS = [
    ('episodeoffer.streamurl', 120),
    ('playaction', 60),
    ('headerbuttonitems', 35),
    ('contextaction', 25),
    ('primarybuttonaction', 25),
]

AUDIO_EXTENSION_PATTERN = re.compile(r'\.(mp3|m4a|aac|ogg)(\?.*)?$', re.IGNORECASE)
AUDIO_EXTENSION_POINTS = 35
SECURE_SCHEME_POINTS = 10


@dataclass
class Candidate:
    """A plausible stream URL found during the fallback walk."""

    url: str
    path: str
    score: int = 0


def score_candidate(path: str, url: str) -> int:
    """
    Score a stream URL by where it was found and what it looks like.

    Examples:
        >>> score_candidate('root.x.streamUrl', 'https://a.example/x')
        10
        >>> score_candidate('root.data[0].headerButtonItems[0].model.streamUrl', 'http://a.example/ep.mp3')
        70
    """
    path_lower = path.lower()
    url_lower = url.lower()
    score = 0

    for fragment, points in PATH_WEIGHTS:
        if fragment in path_lower:
            score += points

    if AUDIO_EXTENSION_PATTERN.search(url_lower):
        score += AUDIO_EXTENSION_POINTS

    if url_lower.startswith('https://'):
        score += SECURE_SCHEME_POINTS

    return score


def collect_candidates(document: Any) -> List[Candidate]:
    """
    Collect every streamUrl field holding an http URL, deduplicated by URL.

    The first path at which a URL is seen (breadth-first) is the one kept.
    """
    candidates = []
    seen_urls = set()

    for node, path in walk_breadth_first(document):
        if not isinstance(node, dict):
            continue

        for key, value in node.items():
            if key != STREAM_URL_KEY or not is_stream_url(value):
                continue
            if value in seen_urls:
                continue

            seen_urls.add(value)
            candidate_path = f"{path}.{key}"
            candidates.append(Candidate(
                url=value,
                path=candidate_path,
                score=score_candidate(candidate_path, value),
            ))

    return candidates


def rank_candidates(candidates: List[Candidate]) -> List[Candidate]:
    """Order candidates best first: highest score, then shortest path, then path text."""
    return sorted(candidates, key=lambda c: (-c.score, len(c.path), c.path))


def match_fallback(document: Any) -> Optional[str]:
    """Resolve the best-scoring stream URL anywhere in the document."""
    candidates = collect_candidates(document)
    if not candidates:
        return None

    best = rank_candidates(candidates)[0]
    print(f"Fallback scored {len(candidates)} candidate(s), best {best.score} at {best.path}")
    return best.url
