"""
Response helpers for the JSON API.
"""

from typing import Any

from flask import Response, jsonify
from pydantic import BaseModel


def to_json_data(value: Any) -> Any:
    """Convert models (and lists of models) to JSON-compatible data with wire names.

    Args:
        value: Pydantic model, list of models or plain data

    Returns:
        JSON-compatible data
    """
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, list):
        return [to_json_data(item) for item in value]
    return value


def api_response(data: Any = None, status: int = 200) -> tuple[Response, int]:
    """JSON response with the given body.

    Args:
        data: Model or JSON-compatible data
        status: HTTP status code

    Returns:
        Flask response tuple
    """
    return jsonify(to_json_data(data)), status


def error_response(message: str, status: int = 500) -> tuple[Response, int]:
    """JSON error response of the form {"error": message}.

    Args:
        message: Error message
        status: HTTP status code

    Returns:
        Flask response tuple
    """
    return jsonify({"error": message}), status
