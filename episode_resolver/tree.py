"""
Generic document tree helpers shared by every resolution tier.

A document is whatever json.loads produced: dicts and lists bear
children, everything else is a leaf. Nothing here knows about the
episode page schema beyond the stream URL paths.
"""

from collections import deque
from typing import Any, Iterator, NamedTuple, Optional, Tuple

ROOT_PATH = 'root'

# Nested paths from a signature node to its stream URL, tried in order
STREAM_URL_PATHS = (
    ('model', 'playAction', 'episodeOffer', 'streamUrl'),
    ('model', 'streamUrl'),
)


class Signature(NamedTuple):
    """Discriminator pair identifying a node's role in the page schema."""

    kind: str
    model_type: str

    def matches(self, node: Any) -> bool:
        """True if node is an object carrying exactly this $kind/modelType pair."""
        if not isinstance(node, dict):
            return False
        return node.get('$kind') == self.kind and node.get('modelType') == self.model_type


def is_stream_url(value: Any) -> bool:
    """Check that value is a non-empty string that starts with http."""
    return isinstance(value, str) and value.startswith('http')


def child_path(parent_path: str, key: Any) -> str:
    """Build the locator for a child: '.key' for objects, '[i]' for arrays."""
    if isinstance(key, int):
        return f"{parent_path}[{key}]"
    return f"{parent_path}.{key}"


def iter_children(node: Any) -> Iterator[Tuple[Any, Any]]:
    """Yield (key, child) pairs in document order. Leaves yield nothing."""
    if isinstance(node, dict):
        yield from node.items()
    elif isinstance(node, list):
        yield from enumerate(node)


def walk_breadth_first(document: Any) -> Iterator[Tuple[Any, str]]:
    """
    Walk every node of a document, shallowest first, then left to right.

    Container nodes are tracked by identity so no subtree is expanded
    twice, which keeps the walk linear in node count.

    Args:
        document: Parsed JSON document

    Yields:
        (node, path) tuples, starting with (document, 'root')
    """
    queue = deque([(document, ROOT_PATH)])
    visited = set()

    while queue:
        node, path = queue.popleft()

        if isinstance(node, (dict, list)):
            if id(node) in visited:
                continue
            visited.add(id(node))

        yield node, path

        for key, child in iter_children(node):
            queue.append((child, child_path(path, key)))


def get_nested(node: Any, keys: Tuple[str, ...]) -> Any:
    """Follow a key path through nested objects. Returns None on any miss."""
    current = node
    for key in keys:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def extract_stream_url(node: Any) -> Optional[str]:
    """Return the first usable stream URL under a signature node, if any."""
    for keys in STREAM_URL_PATHS:
        value = get_nested(node, keys)
        if is_stream_url(value):
            return value
    return None
