import json
import logging
from functools import wraps
from typing import Any, Callable, Union

import azure.functions as func

from services.exceptions import BadRequest, ServiceError

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,POST,PUT,DELETE,OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


def cors_response(
    body: Union[str, bytes] = b"",
    status: int = 200,
    mime: str = "text/plain"
) -> func.HttpResponse:
    return func.HttpResponse(
        body=body,
        status_code=status,
        mimetype=mime,
        headers=dict(CORS_HEADERS),
    )


def json_response(payload: Any, status: int = 200) -> func.HttpResponse:
    return cors_response(json.dumps(payload), status, "application/json")


def error_response(exc: ServiceError) -> func.HttpResponse:
    return json_response(exc.to_dict(), exc.status)


def get_json_body(req: func.HttpRequest) -> dict:
    try:
        data = req.get_json()
    except ValueError:
        raise BadRequest("Request body must be JSON")
    if not isinstance(data, dict):
        raise BadRequest("Request body must be a JSON object")
    return data


def handle_errors(f: Callable) -> Callable:
    """
    Turns service errors into JSON error responses. Anything unexpected is
    logged and reported as a generic 500 without internals.
    """
    @wraps(f)
    def decorated_function(req: func.HttpRequest) -> func.HttpResponse:
        if req.method == "OPTIONS":
            return cors_response(status=204)
        try:
            return f(req)
        except ServiceError as e:
            if e.status >= 500:
                logger.error(f"{req.method} {req.url} failed: {e.message}")
            return error_response(e)
        except Exception:
            logger.exception(f"Unhandled error in {req.method} {req.url}")
            return json_response({"error": "internal", "message": "Server error"}, 500)

    return decorated_function
