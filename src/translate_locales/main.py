"""
Generates per-language translation files for one namespace of a front-end
i18n bundle.

Workflow:
1.  Loads the source-language JSON file and flattens it to dot-path keys.
2.  For every target language, loads the previous output (the cache) and
    compares the MD5 hash of each source string with the cached hash.
3.  Sends only new or changed strings to DeepL, falling back to Google
    Cloud Translate for unsupported languages or DeepL failures.
4.  Keeps the old translations when no provider delivers, applies the
    manual overrides and writes `<output>/<lang>.json` in source key order.

Configuration comes from environment variables (see config.py) and the
command line flags below.
"""

import argparse
import dataclasses
import logging
import os
import re
import sys
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import requests
from jsonschema import ValidationError

from cache_utils import (
    apply_translations,
    load_cache_snapshot,
    plan_translation,
    retain_cached_entries,
    source_hash,
)
from config import (
    ALL_SUPPORTED_LANGUAGES,
    BASE_LANGUAGE,
    KNOWN_LANGUAGE_CODES,
    OUTPUT_FORMAT_ENTRIES,
    OUTPUT_FORMATS,
    Config,
    setup_logging,
)
from flatten_utils import TranslationEntry, flatten_json, unflatten_json
from json_utils import read_json_file, write_json_file
from overrides import OverrideTable, apply_overrides, load_overrides
from schema_utils import SOURCE_FILE_SCHEMA, validate_document
from translation_service import translate_units

logger = logging.getLogger(__name__)

_FILENAME_LANGUAGE = re.compile(r"(?:^|[._-])([a-z]{2})$")


class SourceFileError(Exception):
    """The source file is missing, unreadable or not a valid translation file."""


@dataclass
class LanguageResult:
    language: str
    output_path: str
    reused: int = 0
    translated: int = 0
    overridden: int = 0
    failed: bool = False


@dataclass
class RunSummary:
    namespace: str
    source_language: str
    results: List[LanguageResult] = field(default_factory=list)

    @property
    def failed_languages(self) -> List[str]:
        return [result.language for result in self.results if result.failed]


def load_source_file(path: str) -> Dict[str, Any]:
    """Reads and validates the source-language JSON file."""
    try:
        data = read_json_file(path)
    except OSError as e:
        raise SourceFileError(f"Could not read source file {path}: {e}") from e
    except ValueError as e:
        raise SourceFileError(f"Source file {path} is not valid JSON: {e}") from e

    try:
        validate_document(data, SOURCE_FILE_SCHEMA, f"source file {path}")
    except ValidationError as e:
        raise SourceFileError(e.message) from e
    return data


def detect_source_language(source_path: str, configured: Optional[str] = None) -> str:
    """Picks the source language: configured value, file name, then default.

    File names like ``tr.json``, ``common.tr.json`` or ``common_tr.json``
    carry the code; only known language codes are accepted.
    """
    if configured:
        return configured.lower()
    stem = os.path.splitext(os.path.basename(source_path))[0].lower()
    match = _FILENAME_LANGUAGE.search(stem)
    if match and match.group(1) in KNOWN_LANGUAGE_CODES:
        return match.group(1)
    return BASE_LANGUAGE


def parse_languages(raw: Optional[str]) -> List[str]:
    """Splits a comma-separated language list, dropping blanks and duplicates."""
    if not raw:
        return list(ALL_SUPPORTED_LANGUAGES)
    languages = [code.strip().lower() for code in raw.split(",") if code.strip()]
    return list(dict.fromkeys(languages))


def _output_value(value: Any, output_format: str) -> Any:
    if isinstance(value, TranslationEntry):
        return value.to_json() if output_format == OUTPUT_FORMAT_ENTRIES else value.translation
    return value


def build_output(source_keys: Sequence[str], resolved: Dict[str, Any], output_format: str) -> Dict[str, Any]:
    """Orders the resolved values like the source and nests them again."""
    ordered = {
        key: _output_value(resolved[key], output_format)
        for key in source_keys
        if key in resolved
    }
    return unflatten_json(ordered)


def process_base_language(
    flat_source: Dict[str, Any],
    language: str,
    namespace: str,
    output_path: str,
    overrides: OverrideTable,
    config: Config,
) -> LanguageResult:
    """Writes the pass-through file for the source language itself."""
    logger.info(f"Handling base language {language.upper()}...")
    resolved = {
        key: TranslationEntry(translation=value, source_hash=source_hash(value)) if isinstance(value, str) else value
        for key, value in flat_source.items()
    }
    result = LanguageResult(language=language, output_path=output_path)
    result.overridden = apply_overrides(resolved, flat_source, overrides, namespace, language)

    write_json_file(output_path, build_output(list(flat_source), resolved, config.output_format))
    logger.info(f"Successfully created and saved base language file to {output_path}")
    return result


def process_language(
    flat_source: Dict[str, Any],
    language: str,
    source_language: str,
    namespace: str,
    output_path: str,
    overrides: OverrideTable,
    config: Config,
    session: requests.Session,
) -> LanguageResult:
    """Translates, merges and writes the file for one target language."""
    logger.info(f"Translating to {language.upper()}...")
    result = LanguageResult(language=language, output_path=output_path)

    snapshot = load_cache_snapshot(config.cache_dir, namespace, language) if config.incremental else {}
    plan = plan_translation(flat_source, snapshot)
    result.reused = plan.reused

    if not plan.pending:
        logger.info(f"All keys are up-to-date for {language.upper()}. Nothing to do.")
    else:
        logger.info(f"   - Found {len(plan.pending)} new or updated string(s) to translate.")
        translations = translate_units(plan.pending, language, source_language, config, session)
        if translations is None:
            logger.error(f"   - Could not generate translation for {language.upper()}. Keeping previous data.")
            untranslated = retain_cached_entries(plan, snapshot)
            if untranslated:
                logger.warning(f"   - {untranslated} string(s) have no translation yet and keep the source text.")
            result.failed = True
        else:
            apply_translations(plan, translations)
            result.translated = len(translations)

    result.overridden = apply_overrides(plan.resolved, flat_source, overrides, namespace, language)

    write_json_file(output_path, build_output(list(flat_source), plan.resolved, config.output_format))
    logger.info(f"Successfully updated and saved translation to {output_path}")
    return result


def run_translation(
    config: Config,
    source_path: str,
    output_dir: str,
    languages: Optional[Sequence[str]] = None,
    session: Optional[requests.Session] = None,
) -> RunSummary:
    """Runs the whole pipeline for one namespace.

    Args:
        config: Run settings.
        source_path: The source-language JSON file.
        output_dir: Directory for `<lang>.json`; its base name is the namespace.
        languages: Target languages, defaults to every supported language.
        session: HTTP session for the provider calls.

    Raises:
        SourceFileError: The source file cannot be used.
        OSError: An output file cannot be written.
    """
    namespace = os.path.basename(os.path.normpath(output_dir))
    target_languages = [language.lower() for language in languages] if languages else list(ALL_SUPPORTED_LANGUAGES)

    logger.info(f"--- Starting translation process for namespace: {namespace} ---")
    logger.info(f"   - Source File: {source_path}")
    logger.info(f"   - Output Dir:  {output_dir}")
    if config.incremental:
        logger.info(f"   - Cache Dir:   {config.cache_dir}")
    else:
        logger.info("   - Cache Dir:   Not provided. Full translation will be performed.")

    source_data = load_source_file(source_path)
    flat_source = flatten_json(source_data)
    if unflatten_json(flat_source) != source_data:
        logger.warning("Source file contains keys with '.'; their nesting will change in the output.")

    source_language = detect_source_language(source_path, config.source_language)
    logger.info(f"   - Source Lang: {source_language}")
    logger.info(f"   - Languages:   {', '.join(target_languages)}")

    unknown = [language for language in target_languages if language not in KNOWN_LANGUAGE_CODES]
    if unknown:
        logger.warning(f"   - Unknown language code(s): {', '.join(unknown)}. Trying them anyway.")

    overrides = load_overrides(config.overrides_path)
    summary = RunSummary(namespace=namespace, source_language=source_language)
    owns_session = session is None
    session = session or requests.Session()
    try:
        for language in target_languages:
            output_path = os.path.join(output_dir, f"{language}.json")
            if language == source_language:
                result = process_base_language(flat_source, language, namespace, output_path, overrides, config)
            else:
                result = process_language(
                    flat_source, language, source_language, namespace, output_path, overrides, config, session
                )
            summary.results.append(result)
    finally:
        if owns_session:
            session.close()

    if summary.failed_languages:
        logger.warning(f"Finished with fallbacks for: {', '.join(summary.failed_languages)}")
    else:
        logger.info("All languages processed successfully!")
    return summary


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Translate a source JSON file into per-language i18n files.")
    parser.add_argument("-s", "--source", required=True, help="Source JSON file path")
    parser.add_argument("-o", "--output", required=True, help="Base output directory for translated files")
    parser.add_argument(
        "-l",
        "--languages",
        help="Optional: Comma-separated list of target language codes (e.g., en,de,az). "
        "If not provided, all supported languages will be translated.",
    )
    parser.add_argument("--cache-dir", help="Previous output root (local or gs://), overrides TRANSLATION_CACHE_DIR")
    parser.add_argument("--overrides", help="Override file (local or gs://), overrides TRANSLATION_OVERRIDES_FILE")
    parser.add_argument("--source-lang", help="Source language code, overrides file name detection")
    parser.add_argument("--format", choices=OUTPUT_FORMATS, help="Output format (default: entries)")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace, environ=None) -> Config:
    """Combines environment settings with command line flags."""
    config = Config.from_env(environ)
    cli_values = {
        "cache_dir": args.cache_dir,
        "overrides_path": args.overrides,
        "source_language": args.source_lang.lower() if args.source_lang else None,
        "output_format": args.format,
    }
    return dataclasses.replace(config, **{key: value for key, value in cli_values.items() if value})


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    try:
        config = build_config(args)
    except ValueError as e:
        sys.exit(f"FATAL: Invalid configuration: {e}")

    setup_logging(config.test_mode)

    try:
        run_translation(config, args.source, args.output, parse_languages(args.languages))
    except SourceFileError as e:
        logger.critical(f"An error occurred during the translation process: {e}", exc_info=config.test_mode)
        return 1
    except OSError as e:
        logger.critical(f"Could not write translation output: {e}", exc_info=config.test_mode)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
