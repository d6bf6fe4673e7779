"""
Signature-based resolution tiers.

The episode page schema has moved over time:
1. bookmark/EpisodeOffer items inside a flat headerButtonItems list
2. share/EpisodeLockup items inside that same list
3. share/EpisodeLockup items anywhere in a deeply nested tree

The strict tier targets the current shape (3, which also covers 2).
The legacy tier keeps old captures (1) working.
"""

from typing import Any, List, Optional

from .tree import Signature, extract_stream_url, walk_breadth_first

STRICT_SIGNATURE = Signature(kind='share', model_type='EpisodeLockup')
LEGACY_SIGNATURE = Signature(kind='bookmark', model_type='EpisodeOffer')

# The one field a legacy page-data subtree must carry
LEGACY_LIST_FIELD = 'headerButtonItems'


def find_signature_node(document: Any, signature: Signature) -> Optional[dict]:
    """
    Find the shallowest node matching a signature that also carries a stream URL.

    Args:
        document: Parsed JSON document
        signature: Discriminator pair to look for

    Returns:
        The first qualifying node in breadth-first order, or None
    """
    for node, _path in walk_breadth_first(document):
        if signature.matches(node) and extract_stream_url(node):
            return node
    return None


def match_strict(document: Any) -> Optional[str]:
    """Resolve the stream URL from a share/EpisodeLockup node anywhere in the tree."""
    node = find_signature_node(document, STRICT_SIGNATURE)
    return extract_stream_url(node) if node is not None else None


def _page_data(element: Any) -> Any:
    data = element.get('data') if isinstance(element, dict) else None
    return data if isinstance(data, dict) else element


def page_data_subtrees(document: Any) -> List[Any]:
    """
    Normalize the known historical top-level shapes into page-data subtrees.

    - [ {data: {...}}, ... ]    each element's data object, else the element
    - {data: [ ... ]}           same rule applied to the data list
    - {data: {...}}             the data object alone

    Any other shape yields no subtrees.
    """
    if isinstance(document, list):
        return [_page_data(element) for element in document]

    if isinstance(document, dict):
        data = document.get('data')
        if isinstance(data, list):
            return [_page_data(element) for element in data]
        if isinstance(data, dict):
            return [data]

    return []


def match_legacy(document: Any) -> Optional[str]:
    """
    Resolve the stream URL from a bookmark/EpisodeOffer header button.

    Only the headerButtonItems list of each page-data subtree is searched,
    never the rest of the subtree.
    """
    for subtree in page_data_subtrees(document):
        if not isinstance(subtree, dict):
            continue

        items = subtree.get(LEGACY_LIST_FIELD)
        if not isinstance(items, list):
            continue

        for item in items:
            if LEGACY_SIGNATURE.matches(item):
                url = extract_stream_url(item)
                if url:
                    return url

    return None
