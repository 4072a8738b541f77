"""
Standardized response utilities
"""

from typing import Any, Optional
from fastapi import HTTPException, status
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder

from app.schemas.common import StandardResponse, ErrorResponse

def success_response(
    message: str,
    data: Any = None,
    status_code: int = 200
) -> JSONResponse:
    """Create standardized success response"""
    response = StandardResponse(
        success=True,
        message=message,
        data=data
    )
    return JSONResponse(
        content=jsonable_encoder(response),
        status_code=status_code
    )

def error_response(
    message: str,
    error_code: Optional[str] = None,
    details: Any = None,
    status_code: int = 400
) -> JSONResponse:
    """Create standardized error response"""
    response = ErrorResponse(
        message=message,
        error_code=error_code,
        details=details
    )
    return JSONResponse(
        content=jsonable_encoder(response),
        status_code=status_code
    )

def backend_warning(warning: Optional[str]) -> JSONResponse:
    """Storage write failed; the app keeps running on possibly stale state"""
    return error_response(
        message=warning or "Failed to save changes to database.",
        error_code="BACKEND_WRITE_FAILED",
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE
    )

def store_loading_response() -> JSONResponse:
    """Guest data has not arrived from storage yet"""
    return error_response(
        message="Invitation is still loading. Please try again shortly.",
        error_code="STORE_LOADING",
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE
    )

def not_found_error(resource: str = "Resource"):
    """Create not found error"""
    raise HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"{resource} not found"
    )

def rate_limit_error():
    """Create rate limit error"""
    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail="Rate limit exceeded. Please try again later."
    )
