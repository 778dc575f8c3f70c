"""HTTP route definitions for the service."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from app.schemas import AdvisoryResponse, SkillRequestEnvelope, SkillResponseEnvelope
from app.skill import dispatch
from services.advisor import FALLBACK_SPEECH, RowingAdvisor, build_default_advisor
from services.upstream import FetchError

router = APIRouter()


def get_advisor() -> RowingAdvisor:
    return build_default_advisor()


@router.get(
    "/advisory",
    response_model=AdvisoryResponse,
    summary="Classify the latest river flow reading into a rowing advisory.",
)
async def get_advisory(
    advisor: RowingAdvisor = Depends(get_advisor),
) -> AdvisoryResponse:
    try:
        advisory = await advisor.current_advisory()
    except FetchError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{FALLBACK_SPEECH} {exc.cause}",
        ) from exc
    return AdvisoryResponse.from_advisory(advisory)


@router.post(
    "/alexa",
    response_model=SkillResponseEnvelope,
    response_model_exclude_none=True,
    summary="Voice skill webhook.",
)
async def skill_webhook(
    envelope: SkillRequestEnvelope,
    advisor: RowingAdvisor = Depends(get_advisor),
) -> SkillResponseEnvelope:
    return await dispatch(envelope, advisor)


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /advisory for current rowing conditions."}
