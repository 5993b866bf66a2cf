import logging
from typing import List, Optional, Sequence

import requests

from cache_utils import TranslationUnit
from config import DEEPL_SUPPORTED_TARGET_LANGS, Config
from deepl_utils import translate_with_deepl
from google_translate_utils import translate_with_google

logger = logging.getLogger(__name__)


def translate_units(
    units: Sequence[TranslationUnit],
    target_lang: str,
    source_lang: str,
    config: Config,
    session: requests.Session,
) -> Optional[List[str]]:
    """Routes a batch to DeepL or Google Translate.

    DeepL is used for the languages it supports, with Google as the fallback
    when a Google key is configured. Everything else goes straight to Google.

    Returns:
        The translations in batch order, or None if no provider succeeded.
    """
    language = target_lang.lower()

    if language in DEEPL_SUPPORTED_TARGET_LANGS:
        logger.info("   - Using primary service: DeepL")
        translations = translate_with_deepl(units, language, source_lang, config, session)
        if translations is None and config.google_api_key:
            logger.info("   - DeepL failed. Using fallback service: Google Cloud Translate")
            translations = translate_with_google(units, language, source_lang, config, session)
        return translations

    if config.google_api_key:
        logger.info(f"   - Language '{language}' not directly supported by DeepL. Using Google Cloud Translate.")
        return translate_with_google(units, language, source_lang, config, session)

    logger.warning(
        f"   - SKIPPING {language.upper()}: Language not supported by DeepL and no Google API key is available."
    )
    return None
