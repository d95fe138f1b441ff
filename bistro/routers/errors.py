# bistro/routers/errors.py

from fastapi import HTTPException

from ..config import settings
from ..services.errors import BistroError, ErrorCode


def http_error(exc: BistroError) -> HTTPException:
    """Map a domain error to an HTTPException with a structured detail."""
    headers = None
    if exc.code == ErrorCode.RATE_LIMITED:
        headers = {"Retry-After": str(max(1, settings.rate_limit_window_ms // 1000))}
    return HTTPException(
        status_code=exc.status_code,
        detail=exc.to_detail(),
        headers=headers,
    )
