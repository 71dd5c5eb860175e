"""JSON envelope used by every API response

    {"success": bool, "data": any, "message": str}
"""

from typing import Any, Optional

from fastapi import Response, status
from fastapi.responses import JSONResponse


def success_response(data: Any = None, message: str = "Success", status_code: int = status.HTTP_200_OK) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": True, "data": data, "message": message},
    )


def error_response(message: str, status_code: int, data: Optional[Any] = None) -> JSONResponse:
    content = {"success": False, "message": message}
    if data is not None:
        content["data"] = data
    return JSONResponse(status_code=status_code, content=content)


def no_content() -> Response:
    """204 with an empty body"""
    return Response(status_code=status.HTTP_204_NO_CONTENT)
