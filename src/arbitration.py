"""Ranking request to the chairman and tolerant parsing of its reply."""

import json
import logging
import math

from config.config_loader import PromptsConfig
from src.models import Answer, MemberSpec, RankingResult
from src.retry import RetryingCaller

logger = logging.getLogger(__name__)


def format_answers(answers: list[Answer], best_index: int | None = None) -> str:
    """Label answers by ordinal only so member identity never reaches the judge."""
    parts = []
    for i, answer in enumerate(answers, start=1):
        marker = " (strongest)" if i == best_index else ""
        parts.append(f"--- Answer {i}{marker} ---\n{answer.text}")
    return "\n\n".join(parts)


def _strip_code_fence(text: str) -> str:
    cleaned = text.strip()
    if cleaned.startswith("```"):
        end_fence = cleaned.rfind("```")
        cleaned = cleaned[3:end_fence] if end_fence > 3 else cleaned.strip("`")
        cleaned = cleaned.strip()
        if cleaned.startswith("json"):
            cleaned = cleaned[4:]
    return cleaned.strip()


def _balanced_span(text: str, start: int) -> str | None:
    """Return the balanced {...} span opening at text[start], ignoring braces inside strings."""
    depth = 0
    in_string = False
    escape_next = False

    for i, char in enumerate(text[start:], start=start):
        if escape_next:
            escape_next = False
            continue
        if char == "\\":
            escape_next = True
            continue
        if char == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]

    return None


def _is_json_object(span: str) -> bool:
    try:
        return isinstance(json.loads(span), dict)
    except (ValueError, RecursionError):
        return False


def extract_json_span(text: str) -> str | None:
    """Return the first balanced {...} span in text that decodes to a JSON object.

    Braces in surrounding prose (e.g. "Answer {2} is best") are skipped over.
    """
    cleaned = _strip_code_fence(text)
    start = cleaned.find("{")
    while start != -1:
        span = _balanced_span(cleaned, start)
        if span is not None and _is_json_object(span):
            return span
        start = cleaned.find("{", start + 1)
    return None


def _coerce_position(value) -> int:
    if isinstance(value, bool):
        raise ValueError(f"not a position: {value!r}")
    number = float(value)
    if not number.is_integer():
        raise ValueError(f"not a whole position: {value!r}")
    return int(number)


def _coerce_confidence(value) -> float:
    # Unreadable confidences count as full confidence.
    if isinstance(value, bool):
        return 1.0
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return 1.0
    if not math.isfinite(number):
        return 1.0
    return min(1.0, max(0.0, number))


def parse_ranking(reply: str | None, count: int) -> RankingResult:
    """Parse the chairman's ranking reply, falling back to the identity ranking.

    The result always holds a permutation of 1..count with count confidences.
    """
    if not reply:
        return RankingResult.fallback(count)

    span = extract_json_span(reply)
    if span is None:
        logger.warning("Ranking reply has no JSON object, using fallback")
        return RankingResult.fallback(count)

    try:
        data = json.loads(span)
        if not isinstance(data["order"], list) or not isinstance(data["confidence"], list):
            raise TypeError("order and confidence must be lists")
        order = [_coerce_position(v) for v in data["order"]]
        raw_confidences = list(data["confidence"])
        reason = str(data.get("reason") or "").strip()
    except (ValueError, TypeError, KeyError, AttributeError, OverflowError, RecursionError) as exc:
        logger.warning("Ranking reply unparsable (%s), using fallback", exc)
        return RankingResult.fallback(count)

    if sorted(order) != list(range(1, count + 1)):
        logger.warning("Ranking order %s is not a permutation of 1..%d, using fallback", order, count)
        return RankingResult.fallback(count)
    if len(raw_confidences) != count:
        logger.warning(
            "Ranking has %d confidences for %d answers, using fallback", len(raw_confidences), count
        )
        return RankingResult.fallback(count)

    return RankingResult(
        order=order,
        confidences=[_coerce_confidence(c) for c in raw_confidences],
        reason=reason,
    )


class Arbitrator:
    """Asks one member to rank the collected answers."""

    def __init__(
        self,
        caller: RetryingCaller,
        judge: MemberSpec,
        prompts: PromptsConfig,
        temperature: float = 0.2,
        max_tokens: int = 400,
    ) -> None:
        self._caller = caller
        self._judge = judge
        self._prompts = prompts
        self._temperature = temperature
        self._max_tokens = max_tokens

    @property
    def judge(self) -> MemberSpec:
        return self._judge

    def build_prompt(self, prompt: str, answers: list[Answer]) -> str:
        return self._prompts.ranking.format(
            count=len(answers),
            question=prompt,
            answers=format_answers(answers),
        )

    async def rank(self, prompt: str, answers: list[Answer]) -> RankingResult:
        logger.info("Ranking %d answers via %s", len(answers), self._judge.label)
        reply = await self._caller.call(
            self._judge,
            self.build_prompt(prompt, answers),
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )
        if reply is None:
            logger.warning("%s returned no ranking, using fallback", self._judge.label)
            return RankingResult.fallback(len(answers))
        ranking = parse_ranking(reply, len(answers))
        logger.debug("Ranking from %s: %s", self._judge.label, ranking)
        return ranking
