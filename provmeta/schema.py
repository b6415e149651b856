"""Config schema validation."""

from __future__ import annotations

from typing import Any

from jsonschema import Draft7Validator


def config_schema() -> dict[str, Any]:
    string_list = {"type": "array", "items": {"type": "string"}}
    return {
        "type": "object",
        "additionalProperties": True,
        "properties": {
            "artworks": {
                "type": "object",
                "additionalProperties": False,
                "properties": {
                    "extensions": string_list,
                    "preview_name": {"type": "string", "minLength": 1},
                    "working_name": {"type": "string", "minLength": 1},
                },
            },
            "certificates": {
                "type": "object",
                "additionalProperties": False,
                "properties": {
                    "file_name": {"type": "string", "minLength": 1},
                    "default_title": {"type": "string"},
                    "info_tags": string_list,
                },
            },
            "licenses": {
                "type": "object",
                "additionalProperties": False,
                "properties": {
                    "public_domain_prefixes": string_list,
                    "required": {"type": "boolean"},
                },
            },
            "linkcheck": {
                "type": "object",
                "additionalProperties": True,
                "properties": {
                    "timeout": {"type": "number", "exclusiveMinimum": 0},
                    "retries": {"type": "integer", "minimum": 0},
                    "retry_backoff_seconds": {"type": "number", "minimum": 0},
                    "cache": {
                        "type": "object",
                        "properties": {
                            "enabled": {"type": "boolean"},
                            "ttl_seconds": {"type": ["integer", "null"], "minimum": 0},
                        },
                    },
                },
            },
            "concurrency": {
                "type": "object",
                "additionalProperties": False,
                "properties": {"default": {"type": "integer", "minimum": 1}},
            },
            "logging": {
                "type": "object",
                "additionalProperties": True,
                "properties": {"path": {"type": ["string", "null"]}},
            },
            "report": {
                "type": "object",
                "additionalProperties": True,
                "properties": {
                    "enabled": {"type": "boolean"},
                    "path": {"type": ["string", "null"]},
                },
            },
        },
    }


def validate_config_schema(config: dict[str, Any]) -> list[str]:
    validator = Draft7Validator(config_schema())
    errors = []
    for error in sorted(validator.iter_errors(config), key=lambda e: [str(part) for part in e.path]):
        path = ".".join(str(part) for part in error.path)
        prefix = f"{path}: " if path else ""
        errors.append(prefix + error.message)
    return errors
