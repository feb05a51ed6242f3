from functools import wraps
import logging

from flask import jsonify, request

from App.services import ConfirmationRequired, ResourceNotFound
from group_engine import GroupingError, GroupLimitReached, InvariantViolation

logger = logging.getLogger(__name__)


def api_success(data=None, message=None, status_code=200):
    """
    Standardized success response format for API v2

    Args:
        data: The data to return (dict, list, or None)
        message: Optional success message
        status_code: HTTP status code (default: 200)

    Returns:
        Flask response with JSON and status code
    """
    response = {
        "success": True,
        "data": data if data is not None else {}
    }
    if message:
        response["message"] = message
    return jsonify(response), status_code


def api_error(message="An error occurred", errors=None, status_code=400):
    """
    Standardized error response format for API v2

    Args:
        message: Error message to display
        errors: Optional dict/list of detailed errors
        status_code: HTTP status code (default: 400)

    Returns:
        Flask response with JSON and status code
    """
    response = {
        "success": False,
        "message": message
    }
    if errors:
        response["errors"] = errors
    return jsonify(response), status_code


def validate_json_request(request, required_fields=None):
    """
    Validate that a request contains a JSON object with the required fields

    Returns:
        tuple: (data, error_response) - data will be None if error
    """
    if not request.is_json:
        return None, api_error("Request must include JSON body with Content-Type: application/json", status_code=400)

    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not data:
        return None, api_error("Request body must contain valid JSON", status_code=400)

    missing = [field for field in (required_fields or []) if data.get(field) in (None, '')]
    if missing:
        return None, api_error(
            f"Missing required fields: {', '.join(missing)}",
            errors={field: "This field is required" for field in missing},
            status_code=400,
        )
    return data, None


def optional_json():
    """JSON object body if one was sent, otherwise an empty dict."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def parse_bool(value):
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


def grouping_error_response(error):
    """Map engine/service errors onto HTTP status codes."""
    if isinstance(error, ResourceNotFound):
        return api_error(str(error), status_code=404)
    if isinstance(error, InvariantViolation):
        return api_error("Assignment is inconsistent", errors=error.problems, status_code=409)
    if isinstance(error, (ConfirmationRequired, GroupLimitReached)):
        return api_error(str(error), status_code=409)
    return api_error(str(error), status_code=400)


def group_endpoint(action):
    """
    Run a group-editing view, turning GroupingError into 400/404/409 envelopes
    and anything unexpected into a logged 500.
    """
    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            try:
                return view(*args, **kwargs)
            except GroupingError as e:
                logger.info(
                    f"Rejected {action}",
                    extra={'event': 'group_request_rejected', 'action': action, 'reason': str(e)},
                )
                return grouping_error_response(e)
            except Exception as e:
                logger.error(
                    f"Failed to {action}",
                    exc_info=True,
                    extra={'event': 'group_request_failed', 'action': action, 'error': str(e)},
                )
                return api_error(f"Failed to {action}", status_code=500)
        return wrapper
    return decorator
