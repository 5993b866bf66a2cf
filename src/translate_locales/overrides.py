import logging
from typing import Any, Dict, Optional

from google.api_core.exceptions import GoogleAPICallError
from google.auth.exceptions import GoogleAuthError
from jsonschema import ValidationError

from cache_utils import source_hash
from flatten_utils import TranslationEntry, flatten_json
from json_utils import load_json_document
from schema_utils import OVERRIDES_SCHEMA, validate_document

logger = logging.getLogger(__name__)

# namespace -> language -> dot.path key -> forced translation
OverrideTable = Dict[str, Dict[str, Dict[str, Any]]]


def load_overrides(location: Optional[str]) -> OverrideTable:
    """Loads the manually maintained override table.

    A missing or malformed override file is logged and treated as empty so
    that it never blocks a translation run.
    """
    if not location:
        return {}

    try:
        data = load_json_document(location)
    except (OSError, ValueError, GoogleAPICallError, GoogleAuthError) as e:
        logger.error(f"Could not read override file {location}: {e}")
        return {}

    if data is None:
        logger.warning(f"Override file not found: {location}. Continuing without overrides.")
        return {}

    try:
        validate_document(data, OVERRIDES_SCHEMA, "override file")
    except ValidationError as e:
        logger.error(f"{e.message}. Continuing without overrides.")
        return {}

    table: OverrideTable = {}
    for namespace, languages in data.items():
        table[namespace] = {
            language.lower(): flatten_json(keys) for language, keys in languages.items()
        }
    total = sum(len(keys) for languages in table.values() for keys in languages.values())
    logger.info(f"Loaded {total} override(s) for {len(table)} namespace(s) from {location}")
    return table


def apply_overrides(
    resolved: Dict[str, Any],
    flat_source: Dict[str, Any],
    overrides: OverrideTable,
    namespace: str,
    language: str,
) -> int:
    """Forces override translations into the resolved entries.

    The entry hash is computed from the current source text so the override
    is not treated as stale on the next run.

    Returns:
        The number of overrides applied.
    """
    forced = overrides.get(namespace, {}).get(language.lower(), {})
    applied = 0
    for key, translation in forced.items():
        source_text = flat_source.get(key)
        if not isinstance(source_text, str) or not isinstance(translation, str):
            logger.debug(f"Override '{namespace}/{language}/{key}' has no matching source string. Skipping.")
            continue
        resolved[key] = TranslationEntry(translation=translation, source_hash=source_hash(source_text))
        applied += 1

    if applied:
        logger.info(f"   - Applied {applied} override(s) for {language.upper()}.")
    return applied
