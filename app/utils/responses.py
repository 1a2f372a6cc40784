"""
Turns service OperationResults into HTTP responses.

Body is always {"success": bool, "data": ..., "error": ...}; the status
code comes from the error category.
"""

from typing import Optional, Type

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..services.errors import BookingEngineError
from ..services.results import OperationResult


def _serialize(data, schema: Optional[Type[BaseModel]]):
    if schema is None or data is None:
        return data
    if isinstance(data, list):
        return [schema.model_validate(item).model_dump(mode="json") for item in data]
    return schema.model_validate(data).model_dump(mode="json")


def envelope(
    result: OperationResult,
    schema: Optional[Type[BaseModel]] = None,
    status_code: int = 200,
    missing: Optional[BookingEngineError] = None
) -> JSONResponse:
    """
    Render a result. `missing` turns a successful None payload (an
    ownership-scoped read that found nothing) into that error.
    """
    if result.success and result.data is None and missing is not None:
        result = OperationResult.fail(missing.to_info())

    if not result.success:
        return JSONResponse(
            status_code=result.error.status_code,
            content=jsonable_encoder({
                "success": False,
                "data": None,
                "error": result.error.to_dict(),
            }),
        )

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder({
            "success": True,
            "data": _serialize(result.data, schema),
            "error": None,
        }),
    )
