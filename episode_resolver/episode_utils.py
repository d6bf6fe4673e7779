"""
Episode field helpers for the episode enricher.

Episode titles come from the page's JSON-LD block, which carries HTML
entities and typographic punctuation. They are limited to 70 characters
and cut at word boundaries without leaving a dangling separator.
"""

import html
import re
from typing import Dict, Optional, Tuple

MAX_TITLE_LENGTH = 70

TITLE_PUNCTUATION = '.,!?-:;\'"()[]&#/'

# Typographic characters common in episode names, folded to ASCII
TYPOGRAPHIC_FOLDS = str.maketrans({
    '‘': "'", '’': "'", '“': '"', '”': '"',
    '–': '-', '—': '-', '…': '...', ' ': ' ',
})

DANGLING_SEPARATORS = ' :;,-/|&'

ISO_DURATION_PATTERN = re.compile(
    r'^P(?:(?P<days>\d+)D)?'
    r'(?:T(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?(?:(?P<seconds>\d+(?:\.\d+)?)S)?)?$'
)


def truncate_title(title: str, max_length: int = MAX_TITLE_LENGTH) -> Tuple[str, bool]:
    """
    Cut an episode title to max_length at a word boundary.

    Separators left hanging at the cut ("Episode 12:", "Part 2 -") are
    dropped. A single word longer than the limit is cut with '...'.

    Returns:
        Tuple of (title, was_truncated)

    Examples:
        >>> truncate_title("Episode 12: Interview", 70)
        ('Episode 12: Interview', False)

        >>> truncate_title("Episode 12: Conversations", 15)
        ('Episode 12', True)
    """
    if not title:
        return ('', False)

    title = ' '.join(title.split())
    if len(title) <= max_length:
        return (title, False)

    head = title[:max_length]
    if title[max_length] != ' ':
        head = head[:head.rfind(' ')] if ' ' in head else ''

    head = head.rstrip(DANGLING_SEPARATORS)
    if not head:
        return (title[:max_length - 3] + '...', True)

    return (head, True)


def sanitize_title(title: str) -> str:
    """
    Normalize an episode title scraped from page metadata.

    Unescapes HTML entities, folds curly quotes and dashes to ASCII, drops
    control characters, then keeps letters, digits, spaces and
    TITLE_PUNCTUATION.
    """
    if not title:
        return ''

    title = html.unescape(title).translate(TYPOGRAPHIC_FOLDS)
    title = re.sub(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]', '', title)
    title = ''.join(c for c in title if c.isalnum() or c.isspace() or c in TITLE_PUNCTUATION)
    return ' '.join(title.split())


def clean_episode_title(title: Optional[str]) -> Optional[str]:
    """Sanitize then truncate. Returns None when nothing usable is left."""
    cleaned, _ = truncate_title(sanitize_title(title or ''))
    return cleaned or None


def parse_iso_duration(duration: Optional[str]) -> Optional[int]:
    """
    Convert an ISO-8601 duration to whole minutes (rounded).

    Examples:
        >>> parse_iso_duration('PT1H3M10S')
        63
        >>> parse_iso_duration('PT45M')
        45
    """
    if not duration or not isinstance(duration, str):
        return None

    match = ISO_DURATION_PATTERN.match(duration.strip().upper())
    if not match or duration.strip().upper() in ('P', 'PT'):
        return None

    parts = match.groupdict()
    seconds = (
        int(parts['days'] or 0) * 86400 +
        int(parts['hours'] or 0) * 3600 +
        int(parts['minutes'] or 0) * 60 +
        float(parts['seconds'] or 0)
    )
    return round(seconds / 60)


def validate_transcription(transcription: Optional[Dict]) -> Dict:
    """
    Check that an episode transcription can be returned to the caller.

    A usable transcription has non-blank text and a list of paragraphs.

    Returns:
        Dict with valid (bool) and errors (list of messages)
    """
    if transcription is None:
        return {'valid': False, 'errors': ['Transcription result is missing']}

    if not transcription.get('success', True) or transcription.get('error'):
        message = transcription.get('error') or 'unknown failure'
        return {'valid': False, 'errors': [f"Transcription error: {message}"]}

    errors = []
    text = transcription.get('text')
    if not isinstance(text, str) or not text.strip():
        errors.append('Transcript text is empty')

    if not isinstance(transcription.get('paragraphs'), list):
        errors.append('Transcript paragraphs are missing')

    return {'valid': not errors, 'errors': errors}
