"""Tests for the fallback orchestrator."""

import asyncio

import pytest

from src.infrastructure.llm import (
    EMERGENCY_PROVIDER,
    Completion,
    CompletionRequest,
    FallbackOrchestrator,
    GenerationRequest,
    LLMProviderError,
    OrchestrationConfig,
    ProviderDescriptor,
    ProviderHealthTracker,
    TokenUsage,
)


class MockLLMProvider:
    """Mock LLM provider for testing."""

    def __init__(
        self,
        name: str,
        *,
        should_fail: bool = False,
        text: str | None = None,
        delay: float = 0.0,
        calls: list[str] | None = None,
    ) -> None:
        """Initialize the mock provider.

        Args:
            name: Provider name.
            should_fail: If True, always raises LLMProviderError.
            text: Completion text (defaults to "Response from <name>").
            delay: Seconds to wait before answering.
            calls: Shared list recording call order across providers.
        """
        self._name = name
        self._should_fail = should_fail
        self._text = text if text is not None else f"Response from {name}"
        self._delay = delay
        self.calls = calls if calls is not None else []
        self.requests: list[CompletionRequest] = []

    @property
    def name(self) -> str:
        return self._name

    async def complete(self, request: CompletionRequest) -> Completion:
        self.calls.append(self._name)
        self.requests.append(request)
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._should_fail:
            raise LLMProviderError(f"{self._name} is down", provider=self._name)
        return Completion(
            text=self._text,
            provider=self._name,
            model="mock-model",
            usage=TokenUsage(input_tokens=10, output_tokens=5),
        )


class RecordingSleep:
    """Stand-in for asyncio.sleep that records delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def _config(*providers: MockLLMProvider, **kwargs) -> OrchestrationConfig:
    return OrchestrationConfig(
        providers=tuple(
            ProviderDescriptor(name=p.name, priority=i, provider=p)
            for i, p in enumerate(providers)
        ),
        endpoint_name="test",
        **kwargs,
    )


@pytest.fixture
def tracker() -> ProviderHealthTracker:
    return ProviderHealthTracker()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def orchestrator(tracker: ProviderHealthTracker, sleep: RecordingSleep):
    return FallbackOrchestrator(tracker, sleep=sleep)


@pytest.fixture
def request_() -> GenerationRequest:
    return GenerationRequest(
        prompt="How does TimeBack work?",
        system_prompt="system",
        subject="math",
        interests=("soccer",),
        grade_level="4th",
    )


class TestOrdering:
    """Tests for sequential priority-order attempts."""

    async def test_first_success_wins(self, orchestrator, request_) -> None:
        """Should stop at the first provider that succeeds."""
        calls: list[str] = []
        a = MockLLMProvider("a", calls=calls)
        b = MockLLMProvider("b", calls=calls)

        result = await orchestrator.execute(request_, _config(a, b))

        assert result.success is True
        assert result.data == "Response from a"
        assert result.provider == "a"
        assert result.retry_count == 0
        assert calls == ["a"]

    async def test_falls_through_in_order(self, orchestrator, request_, sleep) -> None:
        """A and B fail, C succeeds: attempts must be A, B, C and nothing after."""
        calls: list[str] = []
        a = MockLLMProvider("a", should_fail=True, calls=calls)
        b = MockLLMProvider("b", should_fail=True, calls=calls)
        c = MockLLMProvider("c", calls=calls)
        d = MockLLMProvider("d", calls=calls)

        result = await orchestrator.execute(request_, _config(a, b, c, d))

        assert calls == ["a", "b", "c"]
        assert result.provider == "c"
        assert result.retry_count == 2
        assert result.metadata.providers_attempted == ("a", "b", "c")
        assert result.metadata.emergency_fallback is False
        assert result.usage.output_tokens == 5
        assert sleep.delays == [1.0, 1.0]

    async def test_priority_not_list_position(self, orchestrator, request_) -> None:
        """Providers run by ascending priority rank."""
        calls: list[str] = []
        slow = MockLLMProvider("slow", calls=calls)
        fast = MockLLMProvider("fast", calls=calls)
        config = OrchestrationConfig(
            providers=(
                ProviderDescriptor(name="slow", priority=2, provider=slow),
                ProviderDescriptor(name="fast", priority=1, provider=fast),
            ),
            endpoint_name="test",
        )

        result = await orchestrator.execute(request_, config)

        assert result.provider == "fast"
        assert calls == ["fast"]

    async def test_empty_completion_is_success(self, orchestrator, request_) -> None:
        """Payload shape is not the orchestrator's concern."""
        a = MockLLMProvider("a", text="")
        b = MockLLMProvider("b")

        result = await orchestrator.execute(request_, _config(a, b))

        assert result.provider == "a"
        assert result.data == ""

    async def test_passes_canonical_request(self, orchestrator, request_) -> None:
        """Adapters should receive the prompt as the final user turn."""
        a = MockLLMProvider("a")

        await orchestrator.execute(request_, _config(a))

        sent = a.requests[0]
        assert sent.system_prompt == "system"
        assert sent.messages[-1] == {
            "role": "user",
            "content": "How does TimeBack work?",
        }


class TestRetryDelay:
    """Tests for the fixed delay between providers."""

    async def test_no_delay_after_last_provider(
        self, orchestrator, request_, sleep
    ) -> None:
        """The delay only separates attempts; none follows the final failure."""
        a = MockLLMProvider("a", should_fail=True)
        b = MockLLMProvider("b", should_fail=True)

        await orchestrator.execute(request_, _config(a, b, retry_delay_ms=250))

        assert sleep.delays == [0.25]

    async def test_no_delay_on_success(self, orchestrator, request_, sleep) -> None:
        a = MockLLMProvider("a")

        await orchestrator.execute(request_, _config(a, MockLLMProvider("b")))

        assert sleep.delays == []


class TestCircuitBreakerIntegration:
    """Tests for health tracking during orchestration."""

    async def test_records_failure_and_success(
        self, orchestrator, tracker, request_
    ) -> None:
        a = MockLLMProvider("a", should_fail=True)
        b = MockLLMProvider("b")

        await orchestrator.execute(request_, _config(a, b))

        assert tracker.failures("a") == 1
        assert tracker.failures("b") == 0

    async def test_skips_open_circuit(self, orchestrator, tracker, request_) -> None:
        """A provider with an open circuit is skipped and not counted."""
        for _ in range(3):
            tracker.record_failure("a")
        calls: list[str] = []
        a = MockLLMProvider("a", calls=calls)
        b = MockLLMProvider("b", calls=calls)

        result = await orchestrator.execute(request_, _config(a, b))

        assert calls == ["b"]
        assert result.provider == "b"
        assert result.retry_count == 0
        assert result.metadata.providers_skipped == ("a",)
        assert result.metadata.providers_attempted == ("b",)

    async def test_three_requests_open_the_circuit(
        self, orchestrator, request_
    ) -> None:
        """After three failed requests the provider stops being called."""
        calls: list[str] = []
        a = MockLLMProvider("a", should_fail=True, calls=calls)
        b = MockLLMProvider("b", calls=calls)
        config = _config(a, b)

        for _ in range(4):
            await orchestrator.execute(request_, config)

        assert calls.count("a") == 3
        assert calls.count("b") == 4


class TestEmergencyFallback:
    """Tests for total exhaustion."""

    async def test_all_fail_returns_success(self, orchestrator, request_) -> None:
        """Exhaustion yields success with emergency content, never an exception."""
        a = MockLLMProvider("a", should_fail=True)
        b = MockLLMProvider("b", should_fail=True)

        result = await orchestrator.execute(request_, _config(a, b))

        assert result.success is True
        assert result.provider == EMERGENCY_PROVIDER
        assert result.metadata.emergency_fallback is True
        assert result.is_emergency is True
        assert result.error == "All AI providers failed: b is down"
        assert result.metadata.last_error == "b is down"
        assert result.retry_count == 2
        assert result.metadata.providers_attempted == ("a", "b")

    async def test_emergency_content_uses_request_context(
        self, orchestrator, request_
    ) -> None:
        a = MockLLMProvider("a", should_fail=True)

        result = await orchestrator.execute(request_, _config(a))

        assert result.data["emergency"] is True
        assert "math" in result.data["question"]
        assert "soccer" in result.data["question"]
        assert "4th" in result.data["question"]

    async def test_zero_providers(self, orchestrator, request_) -> None:
        """No providers configured goes straight to emergency content."""
        result = await orchestrator.execute(request_, _config())

        assert result.success is True
        assert result.provider == EMERGENCY_PROVIDER
        assert result.metadata.providers_attempted == ()
        assert result.retry_count == 0
        assert result.error == "No AI providers available"

    async def test_all_skipped(self, orchestrator, tracker, request_) -> None:
        """Every circuit open: nothing is called and there is no last error."""
        for _ in range(3):
            tracker.record_failure("a")
        a = MockLLMProvider("a")

        result = await orchestrator.execute(request_, _config(a))

        assert a.calls == []
        assert result.provider == EMERGENCY_PROVIDER
        assert result.error == "No AI providers available"
        assert result.metadata.providers_skipped == ("a",)

    async def test_fallback_content_override(self, orchestrator, request_) -> None:
        a = MockLLMProvider("a", should_fail=True)

        result = await orchestrator.execute(
            request_, _config(a, fallback_content={"custom": True})
        )

        assert result.data == {"custom": True}

    async def test_unexpected_exception_is_a_failure(
        self, orchestrator, request_
    ) -> None:
        """Errors outside the LLMProviderError family still fall through."""

        class Exploding(MockLLMProvider):
            async def complete(self, request: CompletionRequest) -> Completion:
                raise RuntimeError("boom")

        result = await orchestrator.execute(
            request_, _config(Exploding("x"), MockLLMProvider("y"))
        )

        assert result.provider == "y"


class TestAttemptTimeout:
    """Tests for the per-attempt time bound."""

    async def test_hung_provider_times_out(self, orchestrator, tracker, request_):
        slow = MockLLMProvider("slow", delay=1.0)
        fast = MockLLMProvider("fast")

        result = await orchestrator.execute(
            request_, _config(slow, fast, attempt_timeout_seconds=0.01)
        )

        assert result.provider == "fast"
        assert tracker.failures("slow") == 1

    async def test_timeout_message(self, orchestrator, request_):
        slow = MockLLMProvider("slow", delay=1.0)

        result = await orchestrator.execute(
            request_, _config(slow, attempt_timeout_seconds=0.01)
        )

        assert result.metadata.last_error == "Provider slow timed out after 0.01s"


class TestWireForm:
    """Tests for GenerationResponse.to_dict()."""

    async def test_success_wire_form(self, orchestrator, request_) -> None:
        result = await orchestrator.execute(request_, _config(MockLLMProvider("a")))

        body = result.to_dict()

        assert body["success"] is True
        assert body["provider"] == "a"
        assert body["retryCount"] == 0
        assert body["metadata"]["providersAttempted"] == ["a"]
        assert body["metadata"]["emergencyFallback"] is False
        assert "durationMs" in body["metadata"]
        assert "error" not in body

    async def test_emergency_wire_form(self, orchestrator, request_) -> None:
        result = await orchestrator.execute(
            request_, _config(MockLLMProvider("a", should_fail=True))
        )

        body = result.to_dict()

        assert body["provider"] == "emergency-fallback"
        assert body["metadata"]["emergencyFallback"] is True
        assert body["error"].startswith("All AI providers failed")
