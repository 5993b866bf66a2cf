import logging
import os
import sys
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# --- Provider Endpoints ---
DEEPL_API_URL_FREE = "https://api-free.deepl.com/v2/translate"
DEEPL_API_URL_PRO = "https://api.deepl.com/v2/translate"
GOOGLE_API_URL = "https://translation.googleapis.com/language/translate/v2"

# --- Language Settings ---
BASE_LANGUAGE = "tr"

# Every language the front-end ships a bundle for.
ALL_SUPPORTED_LANGUAGES = [
    "tr", "en", "az", "de", "es", "fr", "it", "pt", "ru", "ja", "ko", "zh", "ar",
]

DEEPL_SUPPORTED_TARGET_LANGS = frozenset([
    "bg", "cs", "da", "de", "el", "en", "es", "et", "fi", "fr",
    "hu", "id", "it", "ja", "ko", "lt", "lv", "nb", "nl", "pl", "pt",
    "ro", "ru", "sk", "sl", "sv", "uk", "zh",
])

KNOWN_LANGUAGE_CODES = frozenset(ALL_SUPPORTED_LANGUAGES) | DEEPL_SUPPORTED_TARGET_LANGS

# --- Output Formats ---
OUTPUT_FORMAT_ENTRIES = "entries"
OUTPUT_FORMAT_PLAIN = "plain"
OUTPUT_FORMATS = (OUTPUT_FORMAT_ENTRIES, OUTPUT_FORMAT_PLAIN)

DEFAULT_REQUEST_TIMEOUT = 30.0


@dataclass(frozen=True)
class Config:
    """Run settings for one invocation of the translation pipeline."""

    deepl_api_key: Optional[str] = None
    google_api_key: Optional[str] = None
    cache_dir: Optional[str] = None
    overrides_path: Optional[str] = None
    source_language: Optional[str] = None
    output_format: str = OUTPUT_FORMAT_ENTRIES
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    test_mode: bool = False

    def __post_init__(self):
        if self.output_format not in OUTPUT_FORMATS:
            raise ValueError(
                f"Unknown output format '{self.output_format}'. Expected one of: {', '.join(OUTPUT_FORMATS)}"
            )
        if self.request_timeout <= 0:
            raise ValueError(f"Request timeout must be positive, got {self.request_timeout}")

    @property
    def incremental(self) -> bool:
        return bool(self.cache_dir) and self.output_format == OUTPUT_FORMAT_ENTRIES

    @classmethod
    def from_env(cls, environ=None) -> "Config":
        """Builds a Config from environment variables.

        When ``environ`` is omitted, a local ``.env`` file is loaded first and
        ``os.environ`` is used.
        """
        if environ is None:
            load_dotenv()
            environ = os.environ

        timeout_raw = environ.get("TRANSLATION_REQUEST_TIMEOUT")
        try:
            request_timeout = float(timeout_raw) if timeout_raw else DEFAULT_REQUEST_TIMEOUT
        except ValueError:
            raise ValueError(f"TRANSLATION_REQUEST_TIMEOUT must be a number, got '{timeout_raw}'")

        source_language = environ.get("TRANSLATION_SOURCE_LANG")
        return cls(
            deepl_api_key=environ.get("DEEPL_API_KEY") or None,
            google_api_key=environ.get("GOOGLE_API_KEY") or None,
            cache_dir=environ.get("TRANSLATION_CACHE_DIR") or None,
            overrides_path=environ.get("TRANSLATION_OVERRIDES_FILE") or None,
            source_language=source_language.lower() if source_language else None,
            output_format=(environ.get("TRANSLATION_OUTPUT_FORMAT") or OUTPUT_FORMAT_ENTRIES).lower(),
            request_timeout=request_timeout,
            test_mode=environ.get("TEST", "false").lower() == "true",
        )


def setup_logging(test_mode: bool = False):
    """Configures the root logger based on the TEST_MODE setting."""
    log_level = logging.DEBUG if test_mode else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stdout,
    )

    # We are interested in our own logs, not the HTTP connection details.
    noisy_loggers = [
        "urllib3",
        "urllib3.connectionpool",
        "google.auth",
        "google.api_core",
    ]
    for logger_name in noisy_loggers:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(f"Logging initialized. TEST_MODE={test_mode}")
