"""AI generation API routes."""

from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from src.api.rate_limit import get_rate_limit_string, limiter
from src.modules.tutor.dependencies import get_tutor_service
from src.modules.tutor.schemas import GenerateRequest, TutorRequest
from src.modules.tutor.service import TutorService

logger = structlog.get_logger()

router = APIRouter(prefix="/api/ai", tags=["ai"])


@router.post("/chat-tutor", summary="Answer a tutor question")
@limiter.limit(get_rate_limit_string)
async def chat_tutor(
    request: Request,  # noqa: ARG001 - required by slowapi
    body: TutorRequest,
    service: Annotated[TutorService, Depends(get_tutor_service)],
) -> JSONResponse:
    """Answer a question, in free text or as a structured content block.

    Provider failures never surface here; the worst case is emergency
    content. Only a structured answer that fails validation returns 500,
    with the raw completion attached.
    """
    logger.info(
        "chat_tutor_request",
        question_length=len(body.question),
        schema_mode=body.is_schema_mode,
        history_length=len(body.message_history),
    )

    result = await service.ask(body)

    status_code = (
        status.HTTP_200_OK if result.success else status.HTTP_500_INTERNAL_SERVER_ERROR
    )
    return JSONResponse(content=result.to_dict(), status_code=status_code)


@router.post("/generate", summary="Generate content with provider fallback")
@limiter.limit(get_rate_limit_string)
async def generate(
    request: Request,  # noqa: ARG001 - required by slowapi
    body: GenerateRequest,
    service: Annotated[TutorService, Depends(get_tutor_service)],
) -> dict[str, Any]:
    """Run a generation and return the full orchestration result."""
    logger.info("generate_request", kind=body.kind, prompt_length=len(body.prompt))
    response = await service.generate(body)
    return response.to_dict()
