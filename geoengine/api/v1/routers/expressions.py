"""
API router for GeoSPARQL expression evaluation.
"""
import logging
from typing import List

from fastapi import APIRouter

from geoengine.api.dependencies import GeoServiceDep
from geoengine.api.v1.models.requests import EvaluationRequest
from geoengine.api.v1.models.responses import (
    EvaluationResponse,
    EvaluationResult,
    FunctionInfo,
)
from geoengine.domain.operations import GeoOperation
from geoengine.domain.vocabulary import GeoPrefixes

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/expressions",
    tags=["expressions"],
)


@router.post(
    "/evaluate",
    response_model=EvaluationResponse,
    summary="Evaluate a GeoSPARQL expression",
    description="""
    Evaluate a GeoSPARQL function over rows of variable bindings.

    Each row yields a typed result, or nulls when a variable is unbound,
    an operand is not a WKT/GML literal, or the geometry operation fails.
    Malformed expressions are rejected with 400.
    """,
    responses={
        400: {"description": "Malformed expression"},
        429: {"description": "Rate limit exceeded"},
    },
)
def evaluate_expression(
    request: EvaluationRequest,
    geo_service: GeoServiceDep,
) -> EvaluationResponse:
    expression = request.expression.to_expression()
    results = geo_service.evaluate(expression, request.rows)
    logger.info(f"Evaluated {expression.operation.value} over {len(request.rows)} rows")
    return EvaluationResponse(
        expression=expression.to_string(prefixed=True),
        results=[
            EvaluationResult(
                value=str(result) if result is not None else None,
                datatype=str(result.datatype) if result is not None else None,
            )
            for result in results
        ],
    )


@router.get(
    "/functions",
    response_model=List[FunctionInfo],
    summary="List supported GeoSPARQL functions",
)
def list_functions() -> List[FunctionInfo]:
    return [
        FunctionInfo(
            name=operation.value,
            uri=str(operation.uri),
            prefixed=GeoPrefixes.compact(operation.uri),
            arity=operation.arity,
            result_kind=operation.result_kind.value,
        )
        for operation in GeoOperation
    ]
