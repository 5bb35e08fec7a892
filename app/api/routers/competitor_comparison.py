"""
app/api/routers/competitor_comparison.py

Competitor comparison endpoints.
"""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.domain.comparison import ComparisonInputError, ComparisonRequest, SocialHandles
from app.schemas.comparison import (
    ComparisonRequestBody,
    ComparisonResponse,
    ErrorResponse,
    HealthResponse,
    SingleSiteRequestBody,
    SingleSiteResponse,
    SnapshotResponse,
)
from app.services.comparison_service import ComparisonService, get_comparison_service
from db.session import get_db

router = APIRouter(prefix="/competitor", tags=["competitor-comparison"])


def _handles(body: object | None) -> SocialHandles:
    if body is None:
        return SocialHandles()
    return SocialHandles.from_mapping(body.model_dump())  # type: ignore[attr-defined]


def _input_error(exc: ComparisonInputError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponse(error=str(exc)).model_dump(),
    )


@router.post(
    "/analyze",
    response_model=ComparisonResponse,
    responses={400: {"model": ErrorResponse}},
)
def analyze(
    body: ComparisonRequestBody,
    db: Session = Depends(get_db),
    comparison_service: ComparisonService = Depends(get_comparison_service),
) -> ComparisonResponse | JSONResponse:
    """
    Compare the subject site with a competitor, reusing the cached competitor snapshot when valid.
    """

    request = ComparisonRequest(
        subject_identity=body.subject_identity,
        subject_site=body.subject_site,
        competitor_site=body.competitor_site,
        subject_handles=_handles(body.subject_handles),
        competitor_handles=_handles(body.competitor_handles),
        force_refresh=body.force_refresh,
    )
    try:
        result = comparison_service.compare(db=db, request=request)
    except ComparisonInputError as exc:
        return _input_error(exc)

    return ComparisonResponse.model_validate(result.to_dict())


@router.post(
    "/analyze-single",
    response_model=SingleSiteResponse,
    responses={400: {"model": ErrorResponse}},
)
def analyze_single(
    body: SingleSiteRequestBody,
    comparison_service: ComparisonService = Depends(get_comparison_service),
) -> SingleSiteResponse | JSONResponse:
    """
    Fetch a full, uncached snapshot for one site.
    """

    try:
        snapshot = comparison_service.analyze_single(domain=body.domain, handles=_handles(body.handles))
    except ComparisonInputError as exc:
        return _input_error(exc)

    return SingleSiteResponse(
        domain=snapshot.site,
        timestamp=datetime.now(timezone.utc),
        snapshot=SnapshotResponse.model_validate(snapshot.to_dict()),
    )


@router.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(
        status="ok",
        service="Competitor Comparison API",
        timestamp=datetime.now(timezone.utc),
    )
