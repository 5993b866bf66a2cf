"""
Protects template placeholders such as ``{{name}}`` or ``{count}`` from
machine translation and puts them back afterwards.

Translation services like to "translate" opaque tokens: they change their
case, drop a boundary character or glue them to neighbouring words. The
placeholders are therefore swapped for numbered sentinels before a request
and restored with a matcher that tolerates those mutations.
"""

import logging
import re
from typing import Dict, List, NamedTuple, Sequence, Tuple

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\{\{?\w+\}?\}")
MARKER_TEMPLATE = "XPLACEHOLDERX{index}XPLACEHOLDERX"

TERMINAL_PUNCTUATION = (".", "!", "?", "…")
_TRAILING_PUNCTUATION = re.compile(r"[.!?…]+$")
_WHITESPACE = re.compile(r"\s+")


class Placeholder(NamedTuple):
    """An extracted placeholder and whether whitespace surrounded it."""

    text: str
    space_before: bool
    space_after: bool


MarkerMap = Dict[str, Placeholder]


def normalize_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def extract_placeholders(text: str) -> Tuple[str, MarkerMap]:
    """Replaces every placeholder with a space-padded sentinel.

    Args:
        text: The source string.

    Returns:
        The text with sentinels and a sentinel -> Placeholder map. Both are
        unchanged/empty when the text contains no placeholders.
    """
    matches = list(PLACEHOLDER_PATTERN.finditer(text))
    if not matches:
        return text, {}

    marker_map: MarkerMap = {}
    parts = []
    last_end = 0
    for index, match in enumerate(matches):
        start, end = match.span()
        marker = MARKER_TEMPLATE.format(index=index)
        marker_map[marker] = Placeholder(
            text=match.group(0),
            space_before=start == 0 or text[start - 1].isspace(),
            space_after=end == len(text) or text[end].isspace(),
        )
        parts.append(text[last_end:start])
        parts.append(f" {marker} ")
        last_end = end
    parts.append(text[last_end:])
    return "".join(parts), marker_map


def _marker_variations(marker: str) -> List[str]:
    return [marker, marker[1:], marker[:-1]]


def restore_placeholders(text: str, marker_map: MarkerMap) -> str:
    """Substitutes the original placeholders back into a translated string.

    Each sentinel is searched case-insensitively, also with its first or last
    character missing. Whitespace around the sentinel is replaced by the
    spacing the placeholder originally had, and the result is
    whitespace-collapsed.
    """
    if not marker_map:
        return text

    result = text
    for marker, placeholder in marker_map.items():
        replacement = (
            (" " if placeholder.space_before else "")
            + placeholder.text
            + (" " if placeholder.space_after else "")
        )
        for variation in _marker_variations(marker):
            pattern = re.compile(rf"\s*{re.escape(variation)}\s*", re.IGNORECASE)
            if pattern.search(result):
                result = pattern.sub(lambda _match: replacement, result)
                break
        else:
            logger.warning(f"Placeholder {placeholder.text} was lost in translation: '{text}'")
    return normalize_whitespace(result)


def normalize_punctuation(source_text: str, translated_text: str) -> str:
    """Drops terminal punctuation the translator added to an unpunctuated source.

    Only ASCII ``.``, ``!``, ``?`` and the ellipsis character are considered.
    """
    if source_text.rstrip().endswith(TERMINAL_PUNCTUATION):
        return translated_text
    stripped = _TRAILING_PUNCTUATION.sub("", translated_text.rstrip())
    return stripped or translated_text


def protect_texts(texts: Sequence[str]) -> Tuple[List[str], List[MarkerMap]]:
    """Runs extract_placeholders over a batch, keeping the order."""
    marked_texts = []
    marker_maps = []
    for text in texts:
        marked, marker_map = extract_placeholders(text)
        marked_texts.append(marked)
        marker_maps.append(marker_map)
    return marked_texts, marker_maps


def finish_translation(source_text: str, translated_text: str, marker_map: MarkerMap) -> str:
    restored = restore_placeholders(translated_text, marker_map)
    return normalize_punctuation(source_text, restored)
