import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict

from schema_utils import is_translation_entry

logger = logging.getLogger(__name__)

KEY_SEPARATOR = "."


class NodeKind(Enum):
    LEAF = "leaf"
    NODE = "node"
    ENTRY = "entry"
    PASSTHROUGH = "passthrough"


@dataclass(frozen=True)
class TranslationEntry:
    """A translated string plus the hash of the source text it came from."""

    translation: str
    source_hash: str

    def to_json(self) -> Dict[str, str]:
        return {"translation": self.translation, "sourceHash": self.source_hash}

    @classmethod
    def from_json(cls, data: Dict[str, str]) -> "TranslationEntry":
        return cls(translation=data["translation"], source_hash=data["sourceHash"])


def classify_node(value: Any, entries_are_leaves: bool = False) -> NodeKind:
    """Decides how the flattener treats a value.

    Translation Entries are only recognised when ``entries_are_leaves`` is
    set, i.e. when reading a previously written output file.
    """
    if isinstance(value, str):
        return NodeKind.LEAF
    if isinstance(value, dict) and value:
        if entries_are_leaves and is_translation_entry(value):
            return NodeKind.ENTRY
        return NodeKind.NODE
    return NodeKind.PASSTHROUGH


def flatten_json(tree: Dict[str, Any], entries_are_leaves: bool = False) -> Dict[str, Any]:
    """Flattens a nested object into a {dot.path: value} map.

    Args:
        tree: The nested JSON object.
        entries_are_leaves: Keep {translation, sourceHash} objects intact.

    Returns:
        An insertion-ordered dict following a depth-first walk of the tree.
    """
    flat: Dict[str, Any] = {}

    def walk(node: Dict[str, Any], prefix: str):
        for key, value in node.items():
            path = f"{prefix}{KEY_SEPARATOR}{key}" if prefix else key
            if classify_node(value, entries_are_leaves) is NodeKind.NODE:
                walk(value, path)
            else:
                flat[path] = value

    walk(tree, "")
    return flat


def unflatten_json(flat: Dict[str, Any]) -> Dict[str, Any]:
    """Rebuilds a nested object from a {dot.path: value} map."""
    tree: Dict[str, Any] = {}
    for path, value in flat.items():
        keys = path.split(KEY_SEPARATOR)
        current = tree
        for key in keys[:-1]:
            child = current.get(key)
            if not isinstance(child, dict):
                if child is not None:
                    logger.warning(f"Key '{path}' overwrites the non-object value at '{key}'.")
                child = {}
                current[key] = child
            current = child
        current[keys[-1]] = value
    return tree
