"""JSON-RPC envelope construction and request decoding."""

import json
from typing import Any, Optional

from pydantic import BaseModel, ValidationError

from shared.models import ErrorObject, RequestEnvelope, ResponseEnvelope

# JSON-RPC error codes
UNAUTHORIZED = -32001
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

# Response id when the request id cannot be recovered
UNPARSEABLE_ID = -1


class RequestDecodeError(Exception):
    """The request body is not a usable JSON-RPC request."""

    def __init__(self, message: str, request_id: int = UNPARSEABLE_ID) -> None:
        super().__init__(message)
        self.request_id = request_id


def success(request_id: int, result: Any) -> ResponseEnvelope:
    """Build a result envelope; pydantic results are rendered by wire name."""
    if isinstance(result, BaseModel):
        result = result.model_dump(mode="json", by_alias=True)
    return ResponseEnvelope(id=request_id, result=result)


def failure(
    request_id: int,
    code: int,
    message: str,
    data: Optional[str] = None
) -> ResponseEnvelope:
    """Build an error envelope."""
    return ResponseEnvelope(
        id=request_id,
        error=ErrorObject(code=code, message=message, data=data),
    )


def _recover_id(payload: Any) -> int:
    if not isinstance(payload, dict):
        return UNPARSEABLE_ID
    value = payload.get("id")
    if value is None:
        return 0
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return UNPARSEABLE_ID


def decode_request(body: bytes | str) -> RequestEnvelope:
    """
    Decode an HTTP body into a request envelope.

    Args:
        body: Raw request body

    Returns:
        The decoded envelope

    Raises:
        RequestDecodeError: If the body is not JSON, not an object, or has
            fields of the wrong type
    """
    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise RequestDecodeError(f"Malformed JSON: {e}")

    if not isinstance(payload, dict):
        raise RequestDecodeError("Request must be a JSON object")

    try:
        return RequestEnvelope.model_validate(payload)
    except ValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise RequestDecodeError(f"Invalid request: {details}", _recover_id(payload))


def peek_request_id(body: bytes | str) -> int:
    """Best-effort request id for responses sent before decoding succeeds."""
    try:
        return decode_request(body).id
    except RequestDecodeError as e:
        return e.request_id
