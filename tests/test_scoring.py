"""Tests for src/scoring.py."""

import pytest

from src.models import Answer, MemberSpec, RankingResult
from src.scoring import length_ranking, score, score_jury


def _answers(*texts: str) -> list[Answer]:
    return [
        Answer(member=MemberSpec(label=f"M{i}", model=f"m{i}", provider="fake"), text=t)
        for i, t in enumerate(texts, start=1)
    ]


def test_three_member_weighted_scores():
    answers = _answers("a", "b", "c")
    ranking = RankingResult(order=[2, 1, 3], confidences=[0.9, 0.6, 0.3], reason="r")

    table = score(answers, ranking)

    assert table.scores == pytest.approx([1.2, 2.7, 0.3])
    assert table.percentages == [44, 100, 11]
    assert table.avg_confidences == pytest.approx([0.6, 0.9, 0.3])
    assert table.best_index == 2


def test_fallback_ranking_scores():
    table = score(_answers("a", "b", "c", "d"), RankingResult.fallback(4))
    assert table.scores == [4.0, 3.0, 2.0, 1.0]
    assert table.percentages == [100, 75, 50, 25]
    assert table.best_index == 1


def test_scoring_is_pure():
    answers = _answers("a", "b", "c")
    ranking = RankingResult(order=[3, 1, 2], confidences=[0.5, 0.7, 0.2], reason="r")
    assert score(answers, ranking) == score(answers, ranking)
    assert ranking.order == [3, 1, 2]


def test_all_zero_confidence_gives_zero_percentages():
    table = score(_answers("a", "b"), RankingResult(order=[1, 2], confidences=[0.0, 0.0], reason="r"))
    assert table.scores == [0.0, 0.0]
    assert table.percentages == [0, 0]
    assert table.best_index == 1


def test_best_index_follows_order_not_score():
    ranking = RankingResult(order=[1, 2], confidences=[0.1, 1.0], reason="r")
    table = score(_answers("a", "b"), ranking)
    assert table.scores == pytest.approx([0.2, 1.0])
    assert table.best_index == 1


def test_empty_order_uses_argmax():
    table = score(_answers("a", "b"), RankingResult(order=[], confidences=[], reason="r"))
    assert table.scores == [0.0, 0.0]
    assert table.best_index == 1


def test_answer_missing_from_order_scores_zero():
    ranking = RankingResult(order=[2], confidences=[1.0], reason="partial")
    table = score(_answers("a", "b"), ranking)
    assert table.scores == [0.0, 2.0]
    assert table.percentages == [0, 100]
    assert table.avg_confidences == [0.0, 1.0]


def test_confidence_clamped():
    ranking = RankingResult(order=[1, 2], confidences=[3.0, -1.0], reason="r")
    table = score(_answers("a", "b"), ranking)
    assert table.scores == [2.0, 0.0]


def test_single_answer():
    table = score(_answers("only"), RankingResult.fallback(1))
    assert table.scores == [1.0]
    assert table.percentages == [100]
    assert table.best_index == 1


def test_jury_sums_scores():
    answers = _answers("a", "b", "c")
    rankings = [
        RankingResult(order=[1, 2, 3], confidences=[1.0, 1.0, 1.0], reason="r1"),
        RankingResult(order=[2, 1, 3], confidences=[1.0, 0.5, 0.5], reason="r2"),
    ]

    table = score_jury(answers, rankings)

    # a: 3*1 + 2*0.5 = 4, b: 2*1 + 3*1 = 5, c: 1 + 0.5 = 1.5
    assert table.scores == pytest.approx([4.0, 5.0, 1.5])
    assert table.percentages == [80, 100, 30]
    assert table.avg_confidences == pytest.approx([0.75, 1.0, 0.75])
    assert table.best_index == 2


def test_jury_of_one_matches_single_ranking():
    answers = _answers("a", "b", "c")
    ranking = RankingResult(order=[2, 1, 3], confidences=[0.9, 0.6, 0.3], reason="r")
    assert score_jury(answers, [ranking]) == score(answers, ranking)


def test_jury_tie_prefers_lowest_index():
    answers = _answers("a", "b")
    rankings = [
        RankingResult(order=[1, 2], confidences=[1.0, 1.0], reason="r1"),
        RankingResult(order=[2, 1], confidences=[1.0, 1.0], reason="r2"),
    ]
    assert score_jury(answers, rankings).best_index == 1


def test_length_ranking_orders_by_length():
    answers = _answers("x" * 200, "x" * 1000, "x" * 400)

    ranking = length_ranking(answers)

    assert ranking.order == [2, 3, 1]
    assert ranking.confidences == pytest.approx([1.0, 0.5, 0.25])
    assert ranking.reason == "length-weighted"


def test_length_ranking_stable_on_ties():
    ranking = length_ranking(_answers("x" * 900, "x" * 800, "short"))
    assert ranking.order == [1, 2, 3]
