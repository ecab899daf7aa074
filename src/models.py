"""Pure dataclasses for the council pipeline. No I/O."""

from dataclasses import dataclass, field
from enum import Enum


class Dialect(str, Enum):
    """Wire dialect spoken by a provider."""

    CHAT = "chat"              # OpenAI-style chat completions
    CANDIDATES = "candidates"  # Gemini generateContent
    MESSAGES = "messages"      # Anthropic messages


class EmptyRosterError(RuntimeError):
    """Raised when no member of the roster produced an answer."""

    def __init__(self, attempted: list[str]) -> None:
        self.attempted = attempted
        super().__init__(f"No answers from any of {len(attempted)} members")


@dataclass(frozen=True)
class MemberSpec:
    label: str                        # display label, e.g. "Groq • Llama-3.3 70B"
    model: str                        # provider model id
    provider: str                     # key into the providers config
    temperature: float | None = None
    max_tokens: int | None = None


@dataclass(frozen=True)
class Answer:
    member: MemberSpec
    text: str


@dataclass
class RankingResult:
    order: list[int]          # 1-based answer positions, best first
    confidences: list[float]  # parallel to order
    reason: str

    @classmethod
    def fallback(cls, count: int) -> "RankingResult":
        """Identity ranking with uniform confidence."""
        return cls(
            order=list(range(1, count + 1)),
            confidences=[1.0] * count,
            reason="fallback",
        )

    @property
    def is_fallback(self) -> bool:
        return self.reason == "fallback"


@dataclass
class ScoreTable:
    scores: list[float]
    percentages: list[int]
    avg_confidences: list[float]
    best_index: int  # 1-based


@dataclass
class CouncilResult:
    prompt: str
    chairman: str
    attempted: list[str]
    answers: list[Answer]
    ranking: RankingResult
    table: ScoreTable
    final: str
    synthesized: bool
    total_duration_sec: float
    jurors: list[str] = field(default_factory=list)

    @property
    def best_answer(self) -> Answer:
        return self.answers[self.table.best_index - 1]

    def to_payload(self) -> dict:
        """Render the result in the external wire shape."""
        return {
            "chairman": self.chairman,
            "modelsAttempted": list(self.attempted),
            "modelsUsed": [a.member.label for a in self.answers],
            "bestIndex": self.table.best_index,
            "bestModel": self.best_answer.member.label,
            "ranking": list(self.ranking.order),
            "rankingReason": self.ranking.reason,
            "percentages": list(self.table.percentages),
            "avgConfidences": list(self.table.avg_confidences),
            "final": self.final,
            "transcripts": [
                {"model": a.member.label, "answer": a.text} for a in self.answers
            ],
        }
