import functools
import json
import logging
from typing import Optional, Tuple

from google.api_core.exceptions import GoogleAPICallError
from google.cloud import storage

logger = logging.getLogger(__name__)

GCS_SCHEME = "gs://"


def is_gcs_uri(location: str) -> bool:
    return location.startswith(GCS_SCHEME)


def split_gcs_uri(uri: str) -> Tuple[str, str]:
    """Splits 'gs://bucket/path/to/blob' into ('bucket', 'path/to/blob')."""
    if not is_gcs_uri(uri):
        raise ValueError(f"Not a GCS URI: {uri}")
    bucket_name, _, blob_name = uri[len(GCS_SCHEME):].partition("/")
    if not bucket_name:
        raise ValueError(f"GCS URI without bucket name: {uri}")
    return bucket_name, blob_name


def join_gcs_uri(base: str, *parts: str) -> str:
    segments = [base.rstrip("/")] + [part.strip("/") for part in parts if part]
    return "/".join(segments)


@functools.lru_cache(maxsize=None)
def get_gcs_client() -> storage.Client:
    """Initializes the GCS client once and returns it on every later call."""
    try:
        return storage.Client()
    except Exception as e:
        logger.error(f"Failed to initialize GCS client: {e}")
        raise


def read_json_from_gcs(uri: str, client: Optional[storage.Client] = None) -> Optional[dict]:
    """Reads and parses a JSON file from GCS.

    Args:
        uri: The full gs:// location of the blob.
        client: An existing storage client. The shared one is used if omitted.

    Returns:
        The parsed JSON data, or None if the blob does not exist.

    Raises:
        GoogleAuthError: No usable credentials for the storage client.
        GoogleAPICallError: The storage API call failed.
        json.JSONDecodeError: The blob is not valid JSON.
    """
    bucket_name, blob_name = split_gcs_uri(uri)
    logger.debug(f"Reading JSON from gs://{bucket_name}/{blob_name}")
    client = client or get_gcs_client()
    blob = client.bucket(bucket_name).blob(blob_name)

    if not blob.exists():
        logger.debug(f"File not found in GCS: gs://{bucket_name}/{blob_name}")
        return None

    try:
        return json.loads(blob.download_as_bytes())
    except GoogleAPICallError as e:
        logger.error(f"GCS API error while reading gs://{bucket_name}/{blob_name}: {e}")
        raise
    except json.JSONDecodeError as e:
        logger.error(f"Failed to decode JSON from gs://{bucket_name}/{blob_name}: {e}")
        raise
