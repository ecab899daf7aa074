"""Confidence-weighted scoring of ranked answers. Pure functions, no I/O."""

from src.models import Answer, RankingResult, ScoreTable

# Answers at least this long get full confidence under length weighting.
FULL_CONFIDENCE_LENGTH = 800


def _clamp(value: float) -> float:
    return min(1.0, max(0.0, value))


def _round_half_up(value: float) -> int:
    return int(value + 0.5)


def _percentages(scores: list[float]) -> list[int]:
    top = max(scores, default=0.0)
    if top <= 0:
        return [0] * len(scores)
    return [_round_half_up(100 * s / top) for s in scores]


def _argmax(scores: list[float]) -> int:
    """1-based index of the highest score, lowest index on ties."""
    best = 0
    for i, s in enumerate(scores):
        if s > scores[best]:
            best = i
    return best + 1


def _weigh(count: int, ranking: RankingResult) -> list[tuple[float, float] | None]:
    """(weighted score, confidence) per answer, None for answers missing from order."""
    weighed: list[tuple[float, float] | None] = []
    for k in range(1, count + 1):
        if k not in ranking.order:
            weighed.append(None)
            continue
        p = ranking.order.index(k)
        confidence = _clamp(ranking.confidences[p]) if p < len(ranking.confidences) else 0.0
        weighed.append(((count - p) * confidence, confidence))
    return weighed


def score(answers: list[Answer], ranking: RankingResult) -> ScoreTable:
    """Turn one ranking into per-answer weighted scores.

    The answer ranked at 0-based position p gets weight N - p, multiplied by
    the confidence stated for that position.
    """
    count = len(answers)
    weighed = _weigh(count, ranking)
    scores = [w[0] if w else 0.0 for w in weighed]
    avg_confidences = [w[1] if w else 0.0 for w in weighed]
    best_index = ranking.order[0] if ranking.order else _argmax(scores)
    return ScoreTable(
        scores=scores,
        percentages=_percentages(scores),
        avg_confidences=avg_confidences,
        best_index=best_index,
    )


def score_jury(answers: list[Answer], rankings: list[RankingResult]) -> ScoreTable:
    """Sum weighted scores over several independent rankings.

    Average confidence is taken over the rankings that placed the answer.
    The best answer is the one with the highest total.
    """
    if len(rankings) == 1:
        return score(answers, rankings[0])

    count = len(answers)
    totals = [0.0] * count
    confidence_sums = [0.0] * count
    placements = [0] * count
    for ranking in rankings:
        for i, w in enumerate(_weigh(count, ranking)):
            if w is None:
                continue
            totals[i] += w[0]
            confidence_sums[i] += w[1]
            placements[i] += 1

    avg_confidences = [
        confidence_sums[i] / placements[i] if placements[i] else 0.0 for i in range(count)
    ]
    return ScoreTable(
        scores=totals,
        percentages=_percentages(totals),
        avg_confidences=avg_confidences,
        best_index=_argmax(totals) if count else 0,
    )


def length_ranking(answers: list[Answer], full_length: int = FULL_CONFIDENCE_LENGTH) -> RankingResult:
    """Rank answers by length, using min(1, len / full_length) as confidence.

    A cheap stand-in for a judged ranking; longer is not better in general.
    """
    confidences = [min(1.0, len(a.text) / full_length) for a in answers]
    order = sorted(range(1, len(answers) + 1), key=lambda k: -confidences[k - 1])
    return RankingResult(
        order=order,
        confidences=[confidences[k - 1] for k in order],
        reason="length-weighted",
    )
