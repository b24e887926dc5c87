# tests/test_reporter_aggregator.py
import pytest

from conftest import FakeContactResolver, make_hit
from media_matching.reporter_matching.models import ContactInfo
from media_matching.reporter_matching.reporter_aggregator import (
    ReporterAggregator,
    compute_composite_score,
    round_half_up,
)


def test_two_articles_get_second_best_bonus():
    """
    0.2 gives a base score of 80; the 0.5 article adds 50**2 / 1000 = 2.5,
    and 82.5 rounds up to 83.
    """
    hits = [
        make_hit("Jane Doe", "X", 0.2, title="First"),
        make_hit("Jane Doe", "X", 0.5, title="Second"),
    ]

    reporters = ReporterAggregator().aggregate(hits)

    assert len(reporters) == 1
    reporter = reporters[0]
    assert reporter.name == "Jane Doe"
    assert reporter.outlet == "X"
    assert reporter.match_score == 83
    assert reporter.total_relevant_articles == 2
    assert reporter.rank == 1
    assert reporter.justification is None


def test_unknown_author_is_dropped():
    """Hits without a known author never become reporters."""
    hits = [
        make_hit("Unknown", "X", 0.1),
        make_hit(None, "X", 0.1, title="No author"),
        make_hit("   ", "X", 0.1, title="Blank author"),
    ]

    assert ReporterAggregator().aggregate(hits) == []


def test_limit_keeps_best_reporter_only():
    hits = [
        make_hit("A Writer", "X", 0.4),
        make_hit("B Writer", "Y", 0.1),
        make_hit("C Writer", "Z", 0.3),
    ]

    reporters = ReporterAggregator().aggregate(hits, limit=1)

    assert len(reporters) == 1
    assert reporters[0].name == "B Writer"
    assert reporters[0].rank == 1


def test_limit_zero_and_negative():
    hits = [make_hit("A Writer", "X", 0.4)]
    aggregator = ReporterAggregator()

    assert aggregator.aggregate(hits, limit=0) == []
    with pytest.raises(ValueError):
        aggregator.aggregate(hits, limit=-1)


def test_default_limit_is_used():
    hits = [make_hit(f"Writer {i}", "X", 0.01 * i, title=f"T{i}") for i in range(20)]

    assert len(ReporterAggregator().aggregate(hits)) == 15
    assert len(ReporterAggregator(default_limit=5).aggregate(hits)) == 5


def test_single_article_keeps_its_own_distance():
    match_score, final_distance = compute_composite_score([0.2])

    assert match_score == 80
    assert final_distance == pytest.approx(0.2)


def test_score_is_capped_at_100():
    match_score, final_distance = compute_composite_score([0.0, 0.0, 0.0])

    assert match_score == 100
    assert final_distance == pytest.approx(0.0)


def test_score_is_clamped_at_zero_for_far_articles():
    match_score, final_distance = compute_composite_score([1.5])

    assert match_score == 0
    assert final_distance == pytest.approx(1.5)


def test_only_second_best_article_contributes():
    base, _ = compute_composite_score([0.3, 0.6])
    with_third, _ = compute_composite_score([0.3, 0.6, 0.1])

    # 70 + 40**2 / 1000 = 71.6 -> 72
    assert base == 72
    # 0.1 becomes the best article: 90 + 70**2 / 1000 = 94.9 -> 95
    assert with_third == 95


def test_adding_an_article_never_lowers_the_score():
    distances = [0.35]
    previous, _ = compute_composite_score(distances)
    for extra in (0.9, 0.4, 0.2, 0.05):
        distances.append(extra)
        current, _ = compute_composite_score(distances)
        assert current >= previous
        previous = current


def test_empty_distances_rejected():
    with pytest.raises(ValueError):
        compute_composite_score([])


def test_round_half_up():
    assert round_half_up(82.5) == 83
    assert round_half_up(82.4999) == 82
    assert round_half_up(-2.5) == -2


def test_reporters_sorted_by_final_distance(sample_hits):
    reporters = ReporterAggregator().aggregate(sample_hits)

    assert [r.name for r in reporters] == ["Jane Doe", "John Roe", "Ann Poe"]
    assert [r.rank for r in reporters] == [1, 2, 3]
    assert [r.match_score for r in reporters] == [83, 70, 40]


def test_ties_keep_first_seen_order():
    hits = [
        make_hit("Zed Writer", "X", 0.25),
        make_hit("Amy Writer", "Y", 0.25),
        make_hit("Bob Writer", "Z", 0.25),
    ]

    reporters = ReporterAggregator().aggregate(hits)

    assert [r.name for r in reporters] == ["Zed Writer", "Amy Writer", "Bob Writer"]


def test_same_author_different_outlets_are_separate_reporters():
    hits = [
        make_hit("Jane Doe", "Wired", 0.2),
        make_hit("Jane Doe", "Guardian", 0.3),
    ]

    reporters = ReporterAggregator().aggregate(hits)

    assert {(r.name, r.outlet) for r in reporters} == {("Jane Doe", "Wired"), ("Jane Doe", "Guardian")}


def test_outlet_falls_back_to_source_then_unknown():
    hits = [
        {"distance": 0.2, "metadata": {"author": "Jane Doe", "source": {"id": "w", "name": "Wired"}}},
        {"distance": 0.3, "metadata": {"author": "John Roe"}},
    ]

    reporters = ReporterAggregator().aggregate(hits)

    assert [(r.name, r.outlet) for r in reporters] == [("Jane Doe", "Wired"), ("John Roe", "Unknown")]


def test_recent_articles_are_best_three():
    hits = [
        make_hit("Jane Doe", "X", d, title=f"Article {i}")
        for i, d in enumerate([0.5, 0.1, 0.4, 0.3, 0.2])
    ]

    reporter = ReporterAggregator().aggregate(hits)[0]

    assert reporter.total_relevant_articles == 5
    assert [a.distance for a in reporter.recent_articles] == [0.1, 0.2, 0.3]
    assert reporter.recent_articles[0].title == "Article 1"


def test_contact_resolved_once_per_reporter():
    resolver = FakeContactResolver(
        {"Jane Doe": ContactInfo(name="Jane Doe", email="jane@example.com", twitter="@jane")}
    )
    hits = [
        make_hit("Jane Doe", "X", 0.2, title="One"),
        make_hit("Jane Doe", "X", 0.3, title="Two"),
        make_hit("John Roe", "Y", 0.4, title="Three"),
    ]

    reporters = ReporterAggregator(resolver).aggregate(hits)

    assert sorted(resolver.calls) == ["Jane Doe", "John Roe"]
    jane, john = reporters
    assert jane.email == "jane@example.com"
    assert jane.twitter == "@jane"
    assert jane.linkedin is None
    assert john.email is None
