# tests/test_pipeline_runner.py
import csv
import io
import json

from conftest import FakeEmbeddingProvider, FakeSearchClient
from media_matching.pipeline.export import reporters_to_csv, reporters_to_email_string
from media_matching.pipeline.pipeline_runner import MatchPipelineRunner, MatchSampleManager
from media_matching.reporter_matching.graph import ReporterMatchingPipeline
from media_matching.reporter_matching.models import RecentArticle, ReporterResult
from media_matching.reporter_matching.query_composer import QueryComposer
from media_matching.reporter_matching.reporter_aggregator import ReporterAggregator


def _reporter(rank, name, email=None, justification=None, urls=()):
    return ReporterResult(
        rank=rank,
        name=name,
        outlet="Wired",
        match_score=90 - rank,
        justification=justification,
        recent_articles=[RecentArticle(url=url, distance=0.1) for url in urls],
        total_relevant_articles=len(urls) or 1,
        email=email,
    )


def test_csv_quotes_every_cell_and_joins_urls():
    reporters = [
        _reporter(
            1,
            'Jane "JD" Doe',
            email="jane@example.com",
            justification="Covers batteries, closely",
            urls=["https://example.com/a", "https://example.com/b"],
        )
    ]

    output = reporters_to_csv(reporters)
    lines = output.splitlines()

    assert lines[0] == (
        '"Rank","Name","Outlet","Match Score","Email","LinkedIn","Twitter",'
        '"Justification","Recent Articles"'
    )
    assert lines[1] == (
        '"1","Jane ""JD"" Doe","Wired","89","jane@example.com","","",'
        '"Covers batteries, closely","https://example.com/a | https://example.com/b"'
    )
    # Parses back to the same cells.
    rows = list(csv.reader(io.StringIO(output)))
    assert rows[1][1] == 'Jane "JD" Doe'


def test_email_string_skips_reporters_without_email():
    reporters = [
        _reporter(1, "Jane Doe", email="jane@example.com"),
        _reporter(2, "John Roe"),
        _reporter(3, "Ann Poe", email="ann@example.com"),
    ]

    assert reporters_to_email_string(reporters) == "Jane Doe <jane@example.com>; Ann Poe <ann@example.com>"
    assert reporters_to_email_string([]) == ""


def test_sample_manager_increments_index(tmp_path):
    manager = MatchSampleManager(samples_dir=tmp_path / "samples")

    assert manager.get_next_sample_index() == 1

    (manager.samples_dir / "match_1.json").write_text("{}", encoding="utf-8")
    (manager.samples_dir / "match_7.json").write_text("{}", encoding="utf-8")
    (manager.samples_dir / "match_notes.json").write_text("{}", encoding="utf-8")

    assert manager.get_next_sample_index() == 8
    assert manager.get_media_list_path(8).name == "media_list_8.csv"


def test_runner_writes_json_and_media_list(tmp_path, sample_hits):
    pipeline = ReporterMatchingPipeline(
        query_composer=QueryComposer(FakeEmbeddingProvider()),
        search_client=FakeSearchClient(sample_hits),
        aggregator=ReporterAggregator(),
    )
    runner = MatchPipelineRunner(MatchSampleManager(tmp_path), pipeline)

    info = runner.run("EV battery recycling", geography=["US"], limit=2)

    assert info["index"] == 1
    assert info["reporters"] == 2

    payload = json.loads(info["output_json_path"].read_text(encoding="utf-8"))
    assert payload["query"]["geography"] == ["US"]
    assert payload["totalArticlesAnalyzed"] == 5
    assert [r["name"] for r in payload["reporters"]] == ["Jane Doe", "John Roe"]
    assert payload["reporters"][0]["matchScore"] == 83

    media_list = info["media_list_path"].read_text(encoding="utf-8").splitlines()
    assert len(media_list) == 3
    assert runner.sample_manager.get_next_sample_index() == 2
