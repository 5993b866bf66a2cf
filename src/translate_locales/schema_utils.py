import logging

from jsonschema import Draft202012Validator, ValidationError
from jsonschema.exceptions import best_match

logger = logging.getLogger(__name__)

# A source file is a nested object; leaves are strings, numbers, booleans,
# null or arrays (the latter are copied through untouched).
SOURCE_FILE_SCHEMA = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "$defs": {
        "node": {
            "anyOf": [
                {"type": ["string", "number", "boolean", "null", "array"]},
                {"type": "object", "additionalProperties": {"$ref": "#/$defs/node"}},
            ]
        }
    },
    "type": "object",
    "additionalProperties": {"$ref": "#/$defs/node"},
}

TRANSLATION_ENTRY_SCHEMA = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "properties": {
        "translation": {"type": "string"},
        "sourceHash": {"type": "string"},
    },
    "required": ["translation", "sourceHash"],
    "additionalProperties": False,
}

# namespace -> language -> (nested or dotted) key -> forced translation
OVERRIDES_SCHEMA = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "$defs": {
        "keys": {
            "type": "object",
            "additionalProperties": {
                "anyOf": [
                    {"type": "string"},
                    {"$ref": "#/$defs/keys"},
                ]
            },
        }
    },
    "type": "object",
    "additionalProperties": {
        "type": "object",
        "additionalProperties": {"$ref": "#/$defs/keys"},
    },
}

_entry_validator = Draft202012Validator(TRANSLATION_ENTRY_SCHEMA)


def is_translation_entry(value) -> bool:
    """Returns True if the value is a {translation, sourceHash} object."""
    return isinstance(value, dict) and _entry_validator.is_valid(value)


def validate_document(instance, schema: dict, description: str):
    """Validates a parsed JSON document, raising ValidationError with context.

    Args:
        instance: The parsed JSON data.
        schema: The JSON schema to validate against.
        description: A human readable name used in the error message.
    """
    error = best_match(Draft202012Validator(schema).iter_errors(instance))
    if error is not None:
        location = ".".join(str(part) for part in error.absolute_path) or "<root>"
        logger.debug(f"Schema validation failed for {description} at '{location}': {error.message}")
        raise ValidationError(f"Invalid {description} at '{location}': {error.message}")
