from typing import Any, Dict, Optional

from fastapi.encoders import jsonable_encoder


def success_response(data: Any = None, message: str = "Success") -> Dict[str, Any]:
    response: Dict[str, Any] = {"status": "success", "message": message}
    if data is not None:
        response["data"] = jsonable_encoder(data)
    return response


def error_response(
    message: str, code: Optional[str] = None, errors: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    response: Dict[str, Any] = {"status": "error", "message": message}
    if errors:
        response["errors"] = errors
    if code is not None:
        response["code"] = code
    return response
