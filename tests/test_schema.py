"""
Unit Tests for the Schema Package.

Checks that the bundled schemas load and describe the required keys.
"""
from jsonschema import Draft7Validator

from schema import CONFIG_SCHEMA, TOKEN_SCHEMA, get_config_schema, get_token_schema


def test_schemas_are_valid_draft7():
    Draft7Validator.check_schema(CONFIG_SCHEMA)
    Draft7Validator.check_schema(TOKEN_SCHEMA)


def test_config_schema_required_keys():
    assert sorted(CONFIG_SCHEMA["required"]) == ["instance", "token_file", "webcal"]


def test_token_schema_required_keys():
    assert sorted(TOKEN_SCHEMA["required"]) == ["base", "client_id", "client_secret", "token"]


def test_getters_return_loaded_schemas():
    assert get_config_schema() is CONFIG_SCHEMA
    assert get_token_schema() is TOKEN_SCHEMA
