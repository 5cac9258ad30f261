"""Quest generation with Pydantic AI over OpenRouter.

The engine only depends on the `generate_quest` contract; this module supplies
an implementation backed by a lazily created agent with structured output,
exponential backoff on transient failures and a circuit breaker.
"""

import asyncio
import logging
import time

from pydantic_ai import Agent
from pydantic_ai.models.openrouter import OpenRouterModel, OpenRouterModelSettings
from pydantic_ai.providers.openrouter import OpenRouterProvider

from src.core.config import settings
from src.core.errors import ErrorCategory, classify_agent_error
from src.core.logging import span
from src.domain.task import Difficulty
from src.models.service_models import QuestResult, QuestUserContext


logger = logging.getLogger(__name__)


QUEST_SYSTEM_PROMPT = """You design quests for a gamified productivity app.
Turn the requested theme into ONE concrete, achievable real-life task.
- Title: short and motivating, under 80 characters.
- Description: one or two sentences explaining exactly what to do.
- Pick the category that best matches the task.
- Respect the requested difficulty: Easy fits in 15 minutes, Medium in about an hour, Hard takes real effort.
- Use "One-time" unless the theme clearly asks for a habit."""

RETRYABLE_CATEGORIES = frozenset({ErrorCategory.RATE_LIMIT_EXCEEDED, ErrorCategory.NETWORK_ERROR})


class _AgentState:
    """Singleton state for agent instance."""

    instance: Agent[None, QuestResult] | None = None


def _create_agent() -> Agent[None, QuestResult]:
    """Create the quest agent (called once, on first use)."""
    api_key = settings.require_credential("openrouter_api_key", "OpenRouter API key")
    provider = OpenRouterProvider(api_key=api_key)

    model_settings: OpenRouterModelSettings | None = None
    if settings.model_provider:
        model_settings = OpenRouterModelSettings(openrouter_provider={"only": [settings.model_provider]})

    model = OpenRouterModel(
        model_name=settings.model_id,
        provider=provider,
        settings=model_settings,
    )

    return Agent(
        model=model,
        output_type=QuestResult,
        system_prompt=QUEST_SYSTEM_PROMPT,
        retries=1,
    )


def get_agent() -> Agent[None, QuestResult]:
    """Get or create the quest agent."""
    if _AgentState.instance is None:
        _AgentState.instance = _create_agent()
    return _AgentState.instance


def build_quest_prompt(theme: str, difficulty: Difficulty, user_context: QuestUserContext) -> str:
    recent = ", ".join(category.value for category in user_context.recent_categories) or "none yet"
    return (
        f"Theme: {theme}\n"
        f"Difficulty: {difficulty.value}\n"
        f"Player: level {user_context.level} ({user_context.tier_name}), "
        f"{user_context.streak}-day streak, {user_context.completed_today} quest(s) completed today.\n"
        f"Recent quest categories: {recent}"
    )


class CircuitBreaker:
    """Stops calling the model after repeated failures until a cooldown passes."""

    def __init__(self, threshold: int = 5, cooldown: float = 60.0) -> None:
        self.threshold = threshold
        self.cooldown = cooldown
        self.failure_count = 0
        self.opened_at: float | None = None

    def record_success(self) -> None:
        self.failure_count = 0
        self.opened_at = None

    def record_failure(self) -> None:
        self.failure_count += 1
        if self.failure_count >= self.threshold and self.opened_at is None:
            self.opened_at = time.monotonic()
            logger.warning("Quest agent circuit breaker opened after %d failures", self.failure_count)

    def can_attempt(self) -> bool:
        if self.opened_at is None:
            return True
        if time.monotonic() - self.opened_at >= self.cooldown:
            # Half-open: allow one trial call; a failure re-opens immediately.
            self.opened_at = None
            self.failure_count = self.threshold - 1
            return True
        return False


class OpenRouterQuestGenerator:
    """Quest generator backed by the OpenRouter quest agent."""

    def __init__(
        self,
        *,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        circuit_breaker: CircuitBreaker | None = None,
    ) -> None:
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.circuit_breaker = circuit_breaker or CircuitBreaker()

    async def generate_quest(
        self,
        theme: str,
        difficulty: Difficulty,
        user_context: QuestUserContext,
    ) -> QuestResult:
        """Generate one quest.

        Raises:
            RuntimeError: If the circuit breaker is open
            Exception: The model error when it is not retryable or retries are exhausted
        """
        with span("quest_agent.generate_quest"):
            prompt = build_quest_prompt(theme, difficulty, user_context)

            for attempt in range(self.max_attempts):
                if not self.circuit_breaker.can_attempt():
                    msg = "Circuit breaker is open. Quest generation temporarily unavailable."
                    raise RuntimeError(msg)

                try:
                    result = await get_agent().run(prompt)
                except Exception as e:
                    category, _ = classify_agent_error(e)
                    self.circuit_breaker.record_failure()
                    if category not in RETRYABLE_CATEGORIES or attempt >= self.max_attempts - 1:
                        logger.error("Quest generation failed (%s) after %d attempt(s)", category.value, attempt + 1)
                        raise
                    delay = min(self.base_delay * (2**attempt), 30.0)
                    logger.warning(
                        "Quest generation attempt %d/%d failed (%s). Retrying in %.2fs",
                        attempt + 1,
                        self.max_attempts,
                        category.value,
                        delay,
                    )
                    await asyncio.sleep(delay)
                    continue

                self.circuit_breaker.record_success()
                return result.output

            msg = "Quest generation made no attempts"
            raise RuntimeError(msg)
