"""Member health checks: ping each member once, without retries."""

import asyncio
import logging

from src.models import MemberSpec
from src.providers.base import ProviderAdapter

logger = logging.getLogger(__name__)

_PING_PROMPT = "Reply with the word OK only."
_PING_MAX_TOKENS = 16
_TIMEOUT_SEC = 15.0


async def _check_one(member: MemberSpec, adapter: ProviderAdapter | None) -> tuple[str, bool, str]:
    """Ping a single member. Returns (label, ok, error_message)."""
    if adapter is None:
        return member.label, False, f"provider '{member.provider}' unavailable"
    try:
        request = adapter.encode(member.model, _PING_PROMPT, 0.0, _PING_MAX_TOKENS)
        payload = await asyncio.wait_for(adapter.send(request), timeout=_TIMEOUT_SEC)
    except Exception as exc:
        return member.label, False, str(exc) or type(exc).__name__
    if adapter.decode(payload) is None:
        return member.label, False, "response carried no text"
    return member.label, True, ""


async def run_health_checks(
    members: list[MemberSpec],
    adapters: dict[str, ProviderAdapter],
) -> dict[str, tuple[bool, str]]:
    """Ping all members in parallel.

    Returns:
        Dict mapping member label -> (ok, error_message).
        error_message is "" when ok is True.
    """
    results = await asyncio.gather(
        *(_check_one(m, adapters.get(m.provider)) for m in members)
    )
    return {label: (ok, err) for label, ok, err in results}
