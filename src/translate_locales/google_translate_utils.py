import logging
from typing import List, Optional, Sequence

import requests

from cache_utils import TranslationUnit
from config import GOOGLE_API_URL, Config
from placeholder_utils import finish_translation, protect_texts

logger = logging.getLogger(__name__)

RATE_LIMIT_REASONS = frozenset(["rateLimitExceeded", "userRateLimitExceeded", "quotaExceeded", "dailyLimitExceeded"])


def _error_details(response: requests.Response):
    """Returns (message, reasons) from a Google API error body."""
    try:
        error = response.json().get("error", {})
    except (ValueError, AttributeError):
        return response.text[:500], set()
    if not isinstance(error, dict):
        return str(error), set()
    reasons = {item.get("reason") for item in error.get("errors", []) if isinstance(item, dict)}
    return error.get("message", response.text[:500]), reasons


def translate_with_google(
    units: Sequence[TranslationUnit],
    target_lang: str,
    source_lang: str,
    config: Config,
    session: requests.Session,
) -> Optional[List[str]]:
    """Translates a batch of strings with one Cloud Translation v2 request.

    Returns:
        The translations in batch order, or None on any failure.
    """
    if not config.google_api_key:
        logger.warning("Google API key is missing. Cannot use Google Translate service.")
        return None
    if not units:
        return []

    source_texts = [unit.text for unit in units]
    marked_texts, marker_maps = protect_texts(source_texts)
    payload = {
        "q": marked_texts,
        "source": source_lang,
        "target": target_lang,
        "format": "text",
    }

    logger.debug(f"Sending {len(units)} string(s) to Google Translate ({source_lang} -> {target_lang}).")
    try:
        response = session.post(
            GOOGLE_API_URL,
            params={"key": config.google_api_key},
            json=payload,
            timeout=config.request_timeout,
        )
    except requests.exceptions.Timeout:
        logger.error(f"Google Translate request timed out after {config.request_timeout}s.")
        return None
    except requests.exceptions.RequestException as e:
        logger.error(f"Google Translate request failed: {e}", exc_info=config.test_mode)
        return None

    if response.status_code != 200:
        message, reasons = _error_details(response)
        if response.status_code == 429 or reasons & RATE_LIMIT_REASONS:
            logger.warning(f"Google Translate rate limit reached (HTTP {response.status_code}): {message}")
        else:
            logger.error(f"Google Translate API Error: {response.status_code} - {message}")
        return None

    try:
        translated_texts = [item["translatedText"] for item in response.json()["data"]["translations"]]
    except (ValueError, KeyError, TypeError) as e:
        logger.error(f"Unexpected Google Translate response body: {e}")
        return None

    if len(translated_texts) != len(units):
        logger.error(f"Google Translate returned {len(translated_texts)} translations for {len(units)} strings.")
        return None

    return [
        finish_translation(source, translated, marker_map)
        for source, translated, marker_map in zip(source_texts, translated_texts, marker_maps)
    ]
