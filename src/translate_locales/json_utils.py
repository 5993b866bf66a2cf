import json
import logging
import os
from typing import Any, Optional

from gcs_utils import is_gcs_uri, join_gcs_uri, read_json_from_gcs

logger = logging.getLogger(__name__)


def read_json_file(path: str) -> Any:
    """Reads and parses a local JSON file. Errors propagate to the caller."""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def write_json_file(path: str, data: Any):
    """Writes data as pretty-printed UTF-8 JSON, creating parent directories."""
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
        f.write("\n")
    logger.debug(f"Wrote {path}")


def load_json_document(location: str) -> Optional[Any]:
    """Loads JSON from a local path or a gs:// URI.

    Returns:
        The parsed data, or None if nothing exists at the location.
    """
    if is_gcs_uri(location):
        return read_json_from_gcs(location)
    if not os.path.exists(location):
        return None
    return read_json_file(location)


def join_location(base: str, *parts: str) -> str:
    if is_gcs_uri(base):
        return join_gcs_uri(base, *parts)
    return os.path.join(base, *parts)
