from datetime import datetime
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from typing import Any, Dict, Optional


def success(
    data: Optional[Any] = None,
    message: str = "Success",
):
    """Envelope for message-only outcomes (deletes, logout)."""
    response = {
        "success": True,
        "message": message,
        "data": data,
        "errors": None,
    }

    # Ensure SQLAlchemy models, datetimes, Decimals, etc. are JSON-serializable.
    return jsonable_encoder(response)


def error_response(
    status_code: int,
    message: str,
    errors: Optional[Any] = None,
    code: str = "ERROR",
    extra: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    content = {
        "success": False,
        "message": message,
        "code": code,
        "data": None,
        "errors": errors or [],
        "timestamp": f"{datetime.utcnow().isoformat()}Z",
    }
    # Route-specific keys (invoice_items_count, error) sit beside the standard ones.
    if extra:
        content.update(extra)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content))
