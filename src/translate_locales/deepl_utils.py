import logging
from typing import List, Optional, Sequence

import requests

from cache_utils import TranslationUnit
from config import DEEPL_API_URL_FREE, DEEPL_API_URL_PRO, Config
from placeholder_utils import finish_translation, protect_texts

logger = logging.getLogger(__name__)

USER_AGENT = "translate-locales/1.0"

# 429: too many requests, 456: character quota exceeded
QUOTA_STATUS_CODES = frozenset([429, 456])

# DeepL wants a regional variant for some target languages.
TARGET_LANGUAGE_VARIANTS = {
    "en": "EN-US",
    "pt": "PT-PT",
}


def deepl_api_url(api_key: str) -> str:
    """Free-plan keys end in ':fx' and are served from a separate host."""
    return DEEPL_API_URL_FREE if api_key.endswith(":fx") else DEEPL_API_URL_PRO


def deepl_target_language(language: str) -> str:
    return TARGET_LANGUAGE_VARIANTS.get(language.lower(), language.upper())


def translate_with_deepl(
    units: Sequence[TranslationUnit],
    target_lang: str,
    source_lang: str,
    config: Config,
    session: requests.Session,
) -> Optional[List[str]]:
    """Translates a batch of strings with one DeepL request.

    Returns:
        The translations in batch order, or None if DeepL could not deliver
        them (missing key, quota, HTTP or network error).
    """
    if not config.deepl_api_key:
        logger.warning("DeepL API key is missing. Cannot use DeepL service.")
        return None
    if not units:
        return []

    source_texts = [unit.text for unit in units]
    marked_texts, marker_maps = protect_texts(source_texts)

    form_data = [("text", text) for text in marked_texts]
    form_data.append(("source_lang", source_lang.upper()))
    form_data.append(("target_lang", deepl_target_language(target_lang)))
    headers = {
        "Authorization": f"DeepL-Auth-Key {config.deepl_api_key}",
        "User-Agent": USER_AGENT,
    }

    logger.debug(f"Sending {len(units)} string(s) to DeepL ({source_lang} -> {target_lang}).")
    try:
        response = session.post(
            deepl_api_url(config.deepl_api_key),
            data=form_data,
            headers=headers,
            timeout=config.request_timeout,
        )
    except requests.exceptions.Timeout:
        logger.error(f"DeepL request timed out after {config.request_timeout}s.")
        return None
    except requests.exceptions.RequestException as e:
        logger.error(f"DeepL request failed: {e}", exc_info=config.test_mode)
        return None

    if response.status_code in QUOTA_STATUS_CODES:
        logger.warning(f"DeepL quota exceeded (HTTP {response.status_code}). Will attempt fallback.")
        return None
    if response.status_code != 200:
        logger.error(f"DeepL API Error: {response.status_code} - {response.text[:500]}")
        return None

    try:
        translated_texts = [item["text"] for item in response.json()["translations"]]
    except (ValueError, KeyError, TypeError) as e:
        logger.error(f"Unexpected DeepL response body: {e}")
        return None

    if len(translated_texts) != len(units):
        logger.error(f"DeepL returned {len(translated_texts)} translations for {len(units)} strings.")
        return None

    return [
        finish_translation(source, translated, marker_map)
        for source, translated, marker_map in zip(source_texts, translated_texts, marker_maps)
    ]
