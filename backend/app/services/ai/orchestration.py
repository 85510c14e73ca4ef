"""
AI Request Orchestrator.

Runs one unit of work against the generative-text provider and hides
transient failures and credential exhaustion from the caller.

Policy per call:
- Capacity-class failure (429/403, "quota", "capacity") on the *first*
  attempt with the primary credential switches once to the fallback
  credential, which starts with a fresh retry budget.
- Transient-class failures, and capacity failures that do not trigger a
  switch, are retried with exponential backoff:
  ``initial_delay_ms * 2**attempt * uniform(0.85, 1.15)``.
- Anything else is raised on first occurrence.
- When the budget on the active credential runs out, the last underlying
  error is raised unchanged.

The orchestrator holds no per-call state on the instance. Each call builds
its own provider client through ``client_factory`` and passes it to the
operation, so concurrent requests never share a client.
"""
import asyncio
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, TypeVar

from app.core.config import get_settings
from app.core.logging import get_logger
from app.core.metrics import (
    record_llm_attempt,
    record_llm_failover,
    record_llm_retry_delay,
)
from app.core.tracing import set_span_attribute, start_span
from app.services.ai.credentials import (
    PRIMARY,
    Credential,
    CredentialSet,
    load_credentials,
)
from app.services.ai.errors import ConfigurationError, ErrorClass, classify_error
from app.services.ai.llm_client import GeminiClient, make_client

logger = get_logger(__name__)

T = TypeVar("T")

Operation = Callable[[GeminiClient], Awaitable[T]]
ClientFactory = Callable[[Credential], GeminiClient]

SUCCESS = "success"


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = 5
    initial_delay_ms: int = 1000
    multiplier: float = 2.0
    jitter_min: float = 0.85
    jitter_max: float = 1.15

    def __post_init__(self):
        if self.max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        if self.initial_delay_ms < 0:
            raise ValueError("initial_delay_ms must not be negative")

    def delay_seconds(self, attempt: int, jitter: float) -> float:
        """Backoff before the attempt that follows ``attempt``."""
        return self.initial_delay_ms * (self.multiplier ** attempt) * jitter / 1000.0


@dataclass(frozen=True)
class AttemptRecord:
    attempt: int
    credential: str
    delay_seconds: float
    outcome: str


class _FailoverRequested(Exception):
    def __init__(self, error: BaseException):
        super().__init__(str(error))
        self.error = error


class AIRequestOrchestrator:
    """Retry, backoff and credential failover around provider calls."""

    def __init__(
        self,
        credentials: CredentialSet,
        client_factory: Optional[ClientFactory] = None,
        policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        jitter: Callable[[float, float], float] = random.uniform,
    ):
        if credentials is None or len(credentials) == 0:
            raise ConfigurationError("AIRequestOrchestrator requires at least one credential")
        self.credentials = credentials
        self.policy = policy or RetryPolicy()
        self._client_factory = client_factory or make_client
        self._sleep = sleep
        self._jitter = jitter

    def _select(self, name: str) -> Credential:
        if self.credentials.has(name):
            return self.credentials.get(name)
        if name == PRIMARY:
            # Only a fallback key is configured
            default = self.credentials.default
            logger.info("ai_orchestrator_primary_missing", using=default.name)
            return default
        raise ConfigurationError(f"Credential '{name}' is not configured")

    async def run(
        self,
        operation: Operation,
        *,
        max_retries: Optional[int] = None,
        initial_delay_ms: Optional[int] = None,
        credential_selector: str = PRIMARY,
        agent: str = "default",
    ) -> T:
        """
        Execute ``operation`` until it succeeds or the policy gives up.

        Args:
            operation: Async callable performing one provider call with the
                client it is given
            max_retries: Attempts allowed per active credential
            initial_delay_ms: Delay before the first retry
            credential_selector: Credential to start with
            agent: Caller name for logs and metrics

        Returns:
            The first successful result.

        Raises:
            The last underlying error, unchanged, once no attempt is left.
        """
        policy = RetryPolicy(
            max_retries=max_retries if max_retries is not None else self.policy.max_retries,
            initial_delay_ms=(
                initial_delay_ms if initial_delay_ms is not None else self.policy.initial_delay_ms
            ),
            multiplier=self.policy.multiplier,
            jitter_min=self.policy.jitter_min,
            jitter_max=self.policy.jitter_max,
        )
        start = self._select(credential_selector)
        fallback = self.credentials.fallback_for(start.name)
        records: List[AttemptRecord] = []

        credential = start
        with start_span("ai.orchestrator.run", **{"ai.agent": agent}):
            while True:
                can_fail_over = fallback is not None and credential is start
                client = self._client_factory(credential)
                try:
                    result = await self._attempt_loop(
                        operation, client, credential, policy, agent, records, can_fail_over
                    )
                except _FailoverRequested as switch:
                    logger.warning(
                        "ai_orchestrator_failover",
                        agent=agent,
                        from_credential=credential.name,
                        to_credential=fallback.name,
                        error=str(switch.error),
                    )
                    record_llm_failover(agent)
                    set_span_attribute("ai.failover", True)
                    credential = fallback
                    continue
                except Exception:
                    set_span_attribute("ai.attempts", len(records))
                    logger.error(
                        "ai_orchestrator_failed",
                        agent=agent,
                        attempts=len(records),
                        credentials=sorted({r.credential for r in records}),
                    )
                    raise

                set_span_attribute("ai.attempts", len(records))
                set_span_attribute("ai.credential", credential.name)
                logger.info(
                    "ai_orchestrator_completed",
                    agent=agent,
                    attempts=len(records),
                    credential=credential.name,
                )
                return result

    async def _attempt_loop(
        self,
        operation: Operation,
        client: GeminiClient,
        credential: Credential,
        policy: RetryPolicy,
        agent: str,
        records: List[AttemptRecord],
        can_fail_over: bool,
    ):
        delay = 0.0
        for attempt in range(policy.max_retries):
            if delay > 0:
                record_llm_retry_delay(agent, delay)
                await self._sleep(delay)

            logger.info(
                "ai_orchestrator_attempt",
                agent=agent,
                credential=credential.name,
                attempt=attempt,
                delay_seconds=round(delay, 3),
            )
            try:
                result = await operation(client)
            except Exception as exc:
                error_class = classify_error(exc)
                records.append(AttemptRecord(attempt, credential.name, delay, error_class.value))
                record_llm_attempt(agent, credential.name, error_class.value)

                if error_class is ErrorClass.CAPACITY and attempt == 0 and can_fail_over:
                    raise _FailoverRequested(exc) from exc

                if error_class is ErrorClass.NON_RETRYABLE:
                    logger.warning(
                        "ai_orchestrator_non_retryable",
                        agent=agent,
                        credential=credential.name,
                        attempt=attempt,
                        error=str(exc),
                        error_type=type(exc).__name__,
                    )
                    raise

                if attempt + 1 >= policy.max_retries:
                    logger.warning(
                        "ai_orchestrator_retries_exhausted",
                        agent=agent,
                        credential=credential.name,
                        attempts=attempt + 1,
                        error_class=error_class.value,
                        error=str(exc),
                    )
                    raise

                delay = policy.delay_seconds(
                    attempt, self._jitter(policy.jitter_min, policy.jitter_max)
                )
                logger.warning(
                    "ai_orchestrator_retry_scheduled",
                    agent=agent,
                    credential=credential.name,
                    attempt=attempt,
                    error_class=error_class.value,
                    next_delay_seconds=round(delay, 3),
                    error=str(exc),
                )
                continue

            records.append(AttemptRecord(attempt, credential.name, delay, SUCCESS))
            record_llm_attempt(agent, credential.name, SUCCESS)
            return result

        raise RuntimeError("retry loop ended without a result")


_orchestrator: Optional[AIRequestOrchestrator] = None


def get_orchestrator() -> AIRequestOrchestrator:
    """
    Global orchestrator built from settings.

    Raises ConfigurationError when no provider key is set; the application
    calls this at startup so a misconfigured process never starts serving.
    """
    global _orchestrator
    if _orchestrator is None:
        settings = get_settings()
        _orchestrator = AIRequestOrchestrator(
            credentials=load_credentials(settings),
            client_factory=lambda credential: make_client(credential, settings),
            policy=RetryPolicy(
                max_retries=settings.ai_max_retries,
                initial_delay_ms=settings.ai_initial_delay_ms,
            ),
        )
    return _orchestrator


def set_orchestrator(orchestrator: Optional[AIRequestOrchestrator]) -> None:
    """Replace (or clear) the global orchestrator."""
    global _orchestrator
    _orchestrator = orchestrator
