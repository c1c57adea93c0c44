"""Tutor service: cache lookup, provider fallback, and schema validation."""

import structlog

from src.infrastructure.cache import ResponseCache, make_cache_key
from src.infrastructure.llm import (
    FallbackOrchestrator,
    GenerationRequest,
    GenerationResponse,
    OrchestrationConfig,
    ProviderDescriptor,
)
from src.infrastructure.llm.schemas import SCHEMA_RESPONSE_FORMAT
from src.infrastructure.observability import add_span_attributes, traced
from src.modules.tutor.exceptions import SchemaValidationError
from src.modules.tutor.prompts import build_chat_prompt, build_schema_prompt
from src.modules.tutor.sanitizer import sanitize_plain_text_deep
from src.modules.tutor.schemas import GenerateRequest, TutorRequest, TutorResult
from src.modules.tutor.validator import validate_schema_response

logger = structlog.get_logger()

CHAT_TEMPERATURE = 0.2
SCHEMA_TEMPERATURE = 0.0
COMMON_RESPONSE_TTL_MINUTES = 24 * 60

SCHEMA_FAILURE_MESSAGE = "Failed to generate valid schema response"

# Canned answers seeded into the cache at startup
COMMON_RESPONSES = (
    {
        "question": "how does timeback work",
        "context": {"interests": ["general"], "gradeLevel": "elementary"},
        "response": {
            "header": "TIMEBACK | HOW IT WORKS",
            "main_heading": "TimeBack's Revolutionary 2-Hour Learning System",
            "description": (
                "TimeBack enables students to learn 2x the material in just 2 hours "
                "per day through AI-powered personalized mastery learning. Students "
                "work with AI tutors that adapt to their learning style, while human "
                "Guides provide motivation and life skills training."
            ),
            "key_points": [
                {
                    "label": "AI-Powered Learning",
                    "description": (
                        "Each student receives personalized instruction from AI tutors "
                        "that identify knowledge gaps and deliver targeted lessons."
                    ),
                },
                {
                    "label": "Mastery-Based Progress",
                    "description": (
                        "Students must achieve 90% proficiency before advancing, "
                        "ensuring solid foundations and preventing learning gaps."
                    ),
                },
                {
                    "label": "Life Skills Focus",
                    "description": (
                        "Afternoons are dedicated to life skills, entrepreneurship, "
                        "and passion projects with expert Guides."
                    ),
                },
            ],
            "next_options": [
                "Show me the daily schedule breakdown",
                "How do AI tutors personalize learning?",
                "What subjects does TimeBack cover?",
            ],
        },
    },
)


def warm_common_responses(cache: ResponseCache) -> int:
    """Seed the cache with canned answers to common schema questions.

    Returns:
        Number of entries written.
    """
    for item in COMMON_RESPONSES:
        request = TutorRequest(
            question=item["question"],
            responseFormat=SCHEMA_RESPONSE_FORMAT,
            **item["context"],
        )
        key = make_cache_key(
            request.question, request.cache_context(), request.response_format
        )
        cache.set(key, item["response"], ttl_minutes=COMMON_RESPONSE_TTL_MINUTES)

    logger.info("common_responses_cached", count=len(COMMON_RESPONSES))
    return len(COMMON_RESPONSES)


class TutorService:
    """Answers tutor questions through the provider fallback chain.

    Schema-mode answers are validated, stripped of markdown, and cached.
    Conversational answers pass through untouched and are never cached,
    since their key would collide across turns of different conversations.
    """

    def __init__(
        self,
        orchestrator: FallbackOrchestrator,
        providers: tuple[ProviderDescriptor, ...],
        *,
        cache: ResponseCache | None = None,
        retry_delay_ms: int = 1000,
        attempt_timeout_seconds: float = 30.0,
        cache_ttl_minutes: int = 120,
    ) -> None:
        """Initialize the tutor service.

        Args:
            orchestrator: Fallback orchestrator shared across requests.
            providers: Ranked provider chain.
            cache: Response cache for schema-mode answers; None disables caching.
            retry_delay_ms: Fixed delay between provider attempts.
            attempt_timeout_seconds: Upper bound for a single provider call.
            cache_ttl_minutes: Lifetime of cached schema answers.
        """
        self._orchestrator = orchestrator
        self._providers = providers
        self._cache = cache
        self._retry_delay_ms = retry_delay_ms
        self._attempt_timeout = attempt_timeout_seconds
        self._cache_ttl_minutes = cache_ttl_minutes

    def _config(self, endpoint_name: str) -> OrchestrationConfig:
        return OrchestrationConfig(
            providers=self._providers,
            endpoint_name=endpoint_name,
            retry_delay_ms=self._retry_delay_ms,
            attempt_timeout_seconds=self._attempt_timeout,
        )

    @traced("tutor.ask")
    async def ask(self, request: TutorRequest) -> TutorResult:
        """Answer a chat-tutor question.

        Args:
            request: The validated tutor request.

        Returns:
            TutorResult. ``success`` is False only when a schema-mode
            completion fails validation.
        """
        schema_mode = request.is_schema_mode
        response_format = SCHEMA_RESPONSE_FORMAT if schema_mode else None
        add_span_attributes({"tutor.schema_mode": schema_mode})

        cache_key: str | None = None
        if schema_mode and self._cache is not None:
            cache_key = make_cache_key(
                request.question, request.cache_context(), request.response_format
            )
            cached = self._cache.get(cache_key)
            if cached is not None:
                logger.info("tutor_cache_hit", question_length=len(request.question))
                return TutorResult(
                    success=True,
                    response=cached,
                    provider="cache",
                    response_format=SCHEMA_RESPONSE_FORMAT,
                    cached=True,
                )

        generation = await self._orchestrator.execute(
            self._build_generation_request(request, schema_mode),
            self._config("chat-tutor"),
        )

        if generation.is_emergency:
            return TutorResult(
                success=True,
                response=generation.data,
                provider=generation.provider,
                response_format=response_format,
                error=generation.error,
            )

        if not schema_mode:
            return TutorResult(
                success=True,
                response=generation.data,
                provider=generation.provider,
            )

        try:
            parsed = validate_schema_response(generation.data)
        except SchemaValidationError as e:
            logger.error(
                "tutor_schema_invalid",
                provider=generation.provider,
                kind=e.kind,
                fields=list(e.fields),
                error=e.message,
            )
            return TutorResult(
                success=False,
                error=SCHEMA_FAILURE_MESSAGE,
                validation_error=e.message,
                raw_response=e.raw_text,
            )

        sanitized = sanitize_plain_text_deep(parsed)
        if cache_key is not None and self._cache is not None:
            self._cache.set(cache_key, sanitized, ttl_minutes=self._cache_ttl_minutes)

        logger.info(
            "tutor_schema_response",
            provider=generation.provider,
            retry_count=generation.retry_count,
        )
        return TutorResult(
            success=True,
            response=sanitized,
            provider=generation.provider,
            response_format=SCHEMA_RESPONSE_FORMAT,
        )

    async def generate(self, request: GenerateRequest) -> GenerationResponse:
        """Run a free-form generation with no caching or validation."""
        generation_request = GenerationRequest(
            prompt=request.prompt,
            system_prompt=request.system_prompt
            or build_chat_prompt(
                request.interests, request.grade_level, request.subject
            ),
            context=request.context,
            interests=tuple(request.interests),
            subject=request.subject,
            grade_level=request.grade_level,
            kind=request.kind,
            temperature=CHAT_TEMPERATURE,
        )
        return await self._orchestrator.execute(
            generation_request, self._config("generate")
        )

    def _build_generation_request(
        self, request: TutorRequest, schema_mode: bool
    ) -> GenerationRequest:
        if schema_mode:
            system_prompt = build_schema_prompt(
                request.interests, request.grade_level, request.subject
            )
            temperature = SCHEMA_TEMPERATURE
            kind = "schema_response"
            response_format = SCHEMA_RESPONSE_FORMAT
        else:
            system_prompt = build_chat_prompt(
                request.interests, request.grade_level, request.subject
            )
            temperature = CHAT_TEMPERATURE
            kind = request.kind or "question_fallback"
            response_format = None

        return GenerationRequest(
            prompt=request.question,
            system_prompt=system_prompt,
            context=request.context,
            interests=tuple(request.interests),
            subject=request.subject,
            grade_level=request.grade_level,
            message_history=tuple(
                {"role": turn.role, "content": turn.content}
                for turn in request.message_history
            ),
            response_format=response_format,
            kind=kind,
            temperature=temperature,
        )
