"""JSON Schema helpers for tool input schemas."""

from typing import Any

from jsonschema import Draft7Validator

from shared.models import SchemaObject, SchemaProperty


def validate_schema(data: Any, schema: dict[str, Any]) -> tuple[bool, list[str]]:
    """
    Validate data against a JSON Schema.

    Args:
        data: The data to validate
        schema: JSON Schema to validate against

    Returns:
        Tuple of (is_valid, list of error messages)
    """
    if not schema:
        return True, []

    validator = Draft7Validator(schema)
    errors = list(validator.iter_errors(data))

    if not errors:
        return True, []

    error_messages = [
        f"{'.'.join(str(p) for p in e.path)}: {e.message}" if e.path else e.message
        for e in errors
    ]

    return False, error_messages


def check_schema(schema: dict[str, Any]) -> None:
    """Raise ``jsonschema.SchemaError`` if ``schema`` is not a valid Draft 7 schema."""
    Draft7Validator.check_schema(schema)


TYPE_MAPPING = {
    "string": "string",
    "str": "string",
    "integer": "integer",
    "int": "integer",
    "number": "number",
    "float": "number",
    "boolean": "boolean",
    "bool": "boolean",
}


def create_tool_schema(
    parameters: list[dict[str, Any]],
    required: list[str] | None = None
) -> SchemaObject:
    """
    Create a tool input schema from a list of parameter definitions.

    Args:
        parameters: List of parameter definitions with name, type, description
        required: Required parameter names; when omitted, every parameter
            not marked ``required: False`` is required

    Returns:
        Schema object with properties in parameter order
    """
    properties = {
        param["name"]: SchemaProperty(
            type=TYPE_MAPPING.get(param.get("type", "string"), "string"),
            description=param.get("description", ""),
        )
        for param in parameters
    }

    if required is None:
        required = [p["name"] for p in parameters if p.get("required", True)]

    return SchemaObject(properties=properties, required=list(required))
