import hashlib
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from google.api_core.exceptions import GoogleAPICallError
from google.auth.exceptions import GoogleAuthError

from flatten_utils import NodeKind, TranslationEntry, classify_node, flatten_json
from json_utils import join_location, load_json_document

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TranslationUnit:
    key: str
    text: str


@dataclass
class TranslationPlan:
    """Outcome of comparing the source strings with a cache snapshot.

    ``resolved`` holds reused TranslationEntry objects and pass-through
    values keyed by dot-path; ``pending`` lists the strings that still need
    a provider call.
    """

    resolved: Dict[str, Any] = field(default_factory=dict)
    pending: List[TranslationUnit] = field(default_factory=list)
    reused: int = 0


def source_hash(text: str) -> str:
    """Returns the hex MD5 digest of a source string."""
    return hashlib.md5(text.encode("utf-8")).hexdigest()


def cache_location(cache_dir: str, namespace: str, language: str) -> str:
    return join_location(cache_dir, namespace, f"{language}.json")


def load_cache_snapshot(cache_dir: Optional[str], namespace: str, language: str) -> Dict[str, TranslationEntry]:
    """Loads the previous run's entries for one (namespace, language) pair.

    A missing or unreadable cache never fails the run; it only means a full
    translation for that language.
    """
    if not cache_dir:
        return {}

    location = cache_location(cache_dir, namespace, language)
    try:
        data = load_json_document(location)
    except (OSError, ValueError, GoogleAPICallError, GoogleAuthError) as e:
        logger.warning(f"   - Could not read cache file {location}: {e}. Will perform a full translation.")
        return {}

    if data is None:
        logger.info(f"   - No cache file found for {language.upper()}. Will perform a full translation.")
        return {}
    if not isinstance(data, dict):
        logger.warning(f"   - Cache file {location} is not a JSON object. Ignoring it.")
        return {}

    snapshot = {}
    skipped = 0
    for key, value in flatten_json(data, entries_are_leaves=True).items():
        if classify_node(value, entries_are_leaves=True) is NodeKind.ENTRY:
            snapshot[key] = TranslationEntry.from_json(value)
        elif isinstance(value, str):
            skipped += 1
    if skipped:
        logger.info(f"   - Ignored {skipped} cached value(s) without a source hash.")
    logger.info(f"   - Found {len(snapshot)} cached translation(s) for {language.upper()}.")
    return snapshot


def plan_translation(flat_source: Dict[str, Any], snapshot: Dict[str, TranslationEntry]) -> TranslationPlan:
    """Splits the source keys into reusable cache hits and pending strings."""
    plan = TranslationPlan()
    for key, value in flat_source.items():
        if not isinstance(value, str):
            plan.resolved[key] = value
            continue

        cached_entry = snapshot.get(key)
        if cached_entry is not None and cached_entry.source_hash == source_hash(value):
            plan.resolved[key] = cached_entry
            plan.reused += 1
        else:
            plan.pending.append(TranslationUnit(key=key, text=value))
    return plan


def apply_translations(plan: TranslationPlan, translations: Sequence[str]):
    """Stores fresh entries for the pending units, in batch order."""
    if len(translations) != len(plan.pending):
        raise ValueError(
            f"Got {len(translations)} translations for {len(plan.pending)} pending strings."
        )
    for unit, translation in zip(plan.pending, translations):
        plan.resolved[unit.key] = TranslationEntry(translation=translation, source_hash=source_hash(unit.text))


def retain_cached_entries(plan: TranslationPlan, snapshot: Dict[str, TranslationEntry]) -> int:
    """Fills pending keys after a failed translation.

    Stale cached entries are kept as they are. Keys that were never
    translated get the source text with an empty hash, so the next run
    picks them up again.

    Returns:
        The number of keys that fell back to the source text.
    """
    untranslated = 0
    for unit in plan.pending:
        cached_entry = snapshot.get(unit.key)
        if cached_entry is not None:
            plan.resolved[unit.key] = cached_entry
        else:
            plan.resolved[unit.key] = TranslationEntry(translation=unit.text, source_hash="")
            untranslated += 1
    return untranslated
