"""Final synthesis: ask the chairman for one answer, fall back to the best answer."""

import logging

from config.config_loader import PromptsConfig
from src.arbitration import format_answers
from src.models import Answer, MemberSpec
from src.retry import RetryingCaller

logger = logging.getLogger(__name__)


class Synthesizer:
    """Merges the collected answers into one final response."""

    def __init__(
        self,
        caller: RetryingCaller,
        chairman: MemberSpec,
        prompts: PromptsConfig,
        temperature: float = 0.5,
        max_tokens: int = 1200,
    ) -> None:
        self._caller = caller
        self._chairman = chairman
        self._prompts = prompts
        self._temperature = temperature
        self._max_tokens = max_tokens

    def build_prompt(self, prompt: str, answers: list[Answer], best_index: int) -> str:
        return self._prompts.synthesis.format(
            question=prompt,
            answers=format_answers(answers, best_index=best_index),
            best=best_index,
            count=len(answers),
        )

    async def synthesize(self, prompt: str, answers: list[Answer], best_index: int) -> tuple[str, bool]:
        """Return (final_text, synthesized).

        synthesized is False when the chairman produced nothing and the best
        answer's own text is returned verbatim.
        """
        logger.info("Running synthesis via %s (best answer %d)", self._chairman.label, best_index)
        text = await self._caller.call(
            self._chairman,
            self.build_prompt(prompt, answers, best_index),
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )
        if not text:
            logger.warning("Synthesis via %s failed, returning answer %d verbatim", self._chairman.label, best_index)
            return answers[best_index - 1].text, False
        return text, True
