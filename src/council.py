"""Council orchestration: fan out, collect, rank, score, synthesize."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import replace

from config.config_loader import AppConfig, CouncilSettings, PromptsConfig
from src.arbitration import Arbitrator
from src.models import Answer, CouncilResult, EmptyRosterError, MemberSpec, RankingResult
from src.providers.base import ProviderAdapter
from src.retry import RetryingCaller, RetryPolicy
from src.scheduler import run_in_waves
from src.scoring import length_ranking, score_jury
from src.synthesis import Synthesizer

logger = logging.getLogger(__name__)

# Quality gate: warn when fewer than this many members answer
_MIN_QUALITY_RESPONSES = 3


def collect_answers(roster: list[MemberSpec], texts: list[str | None]) -> list[Answer]:
    """Pair members with their texts, keeping roster order and dropping empties.

    Raises:
        EmptyRosterError: If no member produced text.
    """
    answers = [
        Answer(member=member, text=text)
        for member, text in zip(roster, texts)
        if text and text.strip()
    ]
    if not answers:
        raise EmptyRosterError([m.label for m in roster])
    return answers


class Council:
    """Runs one prompt through the whole roster and returns a CouncilResult."""

    def __init__(
        self,
        roster: list[MemberSpec],
        chairman: MemberSpec,
        caller: RetryingCaller,
        settings: CouncilSettings,
        prompts: PromptsConfig,
        jurors: list[MemberSpec] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if not roster:
            raise ValueError("Roster is empty")
        self._roster = list(roster)
        self._chairman = chairman
        self._caller = caller
        self._settings = settings
        self._prompts = prompts
        self._sleep = sleep
        self._arbitrators = [
            Arbitrator(
                caller,
                judge,
                prompts,
                temperature=settings.ranking_temperature,
                max_tokens=settings.ranking_max_tokens,
            )
            for judge in [chairman, *(j for j in jurors or [] if j != chairman)]
        ]
        self._synthesizer = Synthesizer(
            caller,
            chairman,
            prompts,
            temperature=settings.synthesis_temperature,
            max_tokens=settings.synthesis_max_tokens,
        )

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        adapters: dict[str, ProviderAdapter],
        chairman_label: str | None = None,
        concurrency: int | None = None,
    ) -> "Council":
        """Build a council from loaded settings, skipping members without an adapter.

        Raises:
            ValueError: If the chairman has no adapter or no member is reachable.
        """
        settings = config.council
        if concurrency is not None:
            settings = replace(settings, concurrency=concurrency)

        roster = [m for m in config.members if m.provider in adapters]
        for skipped in (m for m in config.members if m.provider not in adapters):
            logger.warning("Member %s skipped: provider '%s' unavailable", skipped.label, skipped.provider)
        if not roster:
            raise ValueError("No roster member has an available provider. Check API keys in .env.")

        chairman = config.member(chairman_label or settings.chairman)
        if chairman.provider not in adapters:
            raise ValueError(f"Chairman {chairman.label} has no available provider '{chairman.provider}'")

        jurors = [config.member(label) for label in settings.jurors]
        jurors = [j for j in jurors if j.provider in adapters]

        caller = RetryingCaller(
            adapters,
            RetryPolicy(
                max_attempts=settings.max_attempts,
                max_delay_sec=settings.max_delay_sec,
                cooldown_sec=settings.cooldown_sec,
            ),
        )
        return cls(roster, chairman, caller, settings, config.prompts, jurors=jurors)

    @property
    def roster(self) -> list[MemberSpec]:
        return list(self._roster)

    @property
    def chairman(self) -> MemberSpec:
        return self._chairman

    async def _ask(self, member: MemberSpec, prompt: str) -> str | None:
        temperature = member.temperature if member.temperature is not None else self._settings.temperature
        max_tokens = member.max_tokens if member.max_tokens is not None else self._settings.max_tokens
        return await self._caller.call(member, prompt, temperature=temperature, max_tokens=max_tokens)

    async def gather_answers(self, prompt: str) -> list[Answer]:
        """Ask every member in waves and collect the usable answers."""
        member_prompt = self._prompts.answer.format(question=prompt)
        logger.info(
            "Asking %d members (%d at a time)", len(self._roster), self._settings.concurrency
        )
        texts = await run_in_waves(
            self._roster,
            self._settings.concurrency,
            lambda member: self._ask(member, member_prompt),
            pause_sec=self._settings.wave_pause_sec,
            sleep=self._sleep,
        )
        answers = collect_answers(self._roster, texts)

        if len(self._roster) >= _MIN_QUALITY_RESPONSES and len(answers) < _MIN_QUALITY_RESPONSES:
            logger.warning(
                "Only %d/%d members answered. Council quality is degraded.",
                len(answers),
                len(self._roster),
            )
        logger.info("%d/%d members answered", len(answers), len(self._roster))
        return answers

    async def _rankings(self, prompt: str, answers: list[Answer]) -> list[RankingResult]:
        if self._settings.confidence_source == "length":
            return [length_ranking(answers)]
        return list(await asyncio.gather(*(a.rank(prompt, answers) for a in self._arbitrators)))

    async def run(
        self,
        prompt: str,
        on_answers: Callable[[list[Answer]], None] | None = None,
    ) -> CouncilResult:
        """Run the full council for one prompt.

        Raises:
            ValueError: If the prompt is blank.
            EmptyRosterError: If no member answered.
        """
        if not prompt or not prompt.strip():
            raise ValueError("Prompt must not be empty")

        start = time.monotonic()
        answers = await self.gather_answers(prompt)
        if on_answers:
            on_answers(answers)

        rankings = await self._rankings(prompt, answers)
        ranking = rankings[0]
        table = score_jury(answers, rankings)

        final, synthesized = await self._synthesizer.synthesize(prompt, answers, table.best_index)

        return CouncilResult(
            prompt=prompt,
            chairman=self._chairman.label,
            attempted=[m.label for m in self._roster],
            answers=answers,
            ranking=ranking,
            table=table,
            final=final,
            synthesized=synthesized,
            total_duration_sec=time.monotonic() - start,
            jurors=(
                [a.judge.label for a in self._arbitrators[1:]]
                if self._settings.confidence_source == "arbitrator"
                else []
            ),
        )
