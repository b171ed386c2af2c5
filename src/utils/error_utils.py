"""Response envelope helpers."""

from typing import Dict, Any

CONNECTION_NOT_FOUND = "Connection not found. Connect first using connect()"


def describe_error(error: BaseException) -> str:
    """Message of an exception, falling back to its class name when empty."""
    message = str(error).strip()
    return message or error.__class__.__name__


def return_error(error_msg: str) -> Dict[str, Any]:
    """
    Return a failure envelope.

    Args:
        error_msg: Error message

    Returns:
        Dictionary with ``success`` set to False and the error message
    """
    return {"success": False, "error": error_msg}


def return_success(**fields: Any) -> Dict[str, Any]:
    """Return a success envelope carrying the given result fields."""
    result = {"success": True}
    result.update(fields)
    return result


def connection_not_found() -> Dict[str, Any]:
    """Failure envelope for an unknown or expired connection handle."""
    return return_error(CONNECTION_NOT_FOUND)
