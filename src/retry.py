"""Per-member calls with bounded exponential backoff.

The retry loop is a small state machine::

    Attempting(n, delay) --retryable fault, n < max--> Attempting(n + 1, min(2 * delay, cap))
    Attempting(n, delay) --permanent fault or n == max--> GiveUp
    Attempting(n, delay) --response--> decoded text or None

next_state() is pure so the termination and cap logic can be tested without
a network.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from src.models import MemberSpec
from src.providers.base import ProviderAdapter, ProviderError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    max_delay_sec: float = 20.0
    cooldown_sec: float = 0.5


@dataclass(frozen=True)
class Attempting:
    attempt: int   # 1-indexed
    delay: float   # sleep before the next attempt if this one fails


@dataclass(frozen=True)
class GiveUp:
    reason: str


def next_state(state: Attempting, error: ProviderError, policy: RetryPolicy) -> Attempting | GiveUp:
    """Decide what follows a failed attempt."""
    if not error.retryable:
        if error.status_code is None:
            return GiveUp("non-retryable error")
        return GiveUp(f"non-retryable status {error.status_code}")
    if state.attempt >= policy.max_attempts:
        return GiveUp(f"gave up after {state.attempt} attempts")
    return Attempting(
        attempt=state.attempt + 1,
        delay=min(state.delay * 2, policy.max_delay_sec),
    )


def backoff_schedule(base_delay: float, policy: RetryPolicy) -> list[float]:
    """Sleeps performed by a call whose every attempt hits a retryable fault."""
    transient = ProviderError("schedule", "transient")
    state: Attempting | GiveUp = Attempting(1, min(base_delay, policy.max_delay_sec))
    delays: list[float] = []
    while isinstance(state, Attempting):
        following = next_state(state, transient, policy)
        if isinstance(following, Attempting):
            delays.append(state.delay)
        state = following
    return delays


class RetryingCaller:
    """Calls one member through its provider adapter, absorbing all faults.

    call() returns None whenever the member produced nothing usable; it never
    raises.
    """

    def __init__(
        self,
        adapters: dict[str, ProviderAdapter],
        policy: RetryPolicy | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._adapters = adapters
        self._policy = policy or RetryPolicy()
        self._sleep = sleep

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    def supports(self, member: MemberSpec) -> bool:
        return member.provider in self._adapters

    async def call(
        self,
        member: MemberSpec,
        prompt: str,
        temperature: float,
        max_tokens: int,
        max_attempts: int | None = None,
    ) -> str | None:
        adapter = self._adapters.get(member.provider)
        if adapter is None:
            logger.warning("No adapter for provider '%s' (member %s)", member.provider, member.label)
            return None

        policy = self._policy
        if max_attempts is not None:
            policy = RetryPolicy(max_attempts, policy.max_delay_sec, policy.cooldown_sec)

        try:
            request = adapter.encode(member.model, prompt, temperature, max_tokens)
        except Exception as exc:
            logger.warning("Could not encode request for %s: %s", member.label, exc)
            return None

        state = Attempting(1, min(adapter.base_delay_sec, policy.max_delay_sec))
        while True:
            try:
                payload = await adapter.send(request)
            except ProviderError as exc:
                following = next_state(state, exc, policy)
                if isinstance(following, GiveUp):
                    logger.warning("%s: %s (%s)", member.label, exc, following.reason)
                    return None
                logger.warning(
                    "%s: attempt %d/%d failed (%s), retrying in %.1fs",
                    member.label, state.attempt, policy.max_attempts, exc, state.delay,
                )
                await self._sleep(state.delay)
                state = following
                continue
            except Exception as exc:
                logger.warning("%s: unexpected failure: %s", member.label, exc)
                return None
            break

        try:
            text = adapter.decode(payload)
        except Exception as exc:
            logger.warning("%s: could not decode response: %s", member.label, exc)
            return None
        if text is None:
            logger.warning("%s: response carried no text", member.label)
            return None

        logger.info("%s answered on attempt %d", member.label, state.attempt)
        await self._sleep(policy.cooldown_sec)
        return text
