"""Schema Package - JSON Schema Loading and Validation.

This package provides centralized loading of the JSON schemas used to
validate the configuration file and the token file.

Available Schemas:
    CONFIG_SCHEMA: JSON Schema for the TOML configuration once parsed.
        Requires instance, token_file and webcal.
    TOKEN_SCHEMA: JSON Schema for the token file written by `register`.
        Requires base, client_id, client_secret and token.

Usage Patterns:
    from schema import CONFIG_SCHEMA
    validate(instance=config, schema=CONFIG_SCHEMA)

Error Handling:
    If schema files are missing or contain invalid JSON, the import
    will fail with a clear error message pointing to the expected
    file location.
"""
from .schema import CONFIG_SCHEMA, TOKEN_SCHEMA, get_config_schema, get_token_schema

__all__ = ["CONFIG_SCHEMA", "TOKEN_SCHEMA", "get_config_schema", "get_token_schema"]
