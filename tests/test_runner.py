"""Tests for src.pipeline.runner ensuring traversal order, filtering, caps and failure modes.

Run with:
    pytest tests/test_runner.py --maxfail=1 -v --cov=src.pipeline.runner --cov-report=term-missing
"""

import datetime as dt
import json
from unittest.mock import patch

import pytest

from src.pipeline import runner
from src.pipeline.aggregator import ReactionAggregator
from src.pipeline.collector import ResultCollector
from src.pipeline.config import AggregationConfig
from src.retrieval.http_client import FetchError, SecondaryRateLimitError
from src.retrieval.models import Issue, Reaction, Repository

NOW = dt.datetime(2026, 10, 18, tzinfo=dt.timezone.utc)
CONFIG = AggregationConfig(min_reaction_count=10, recent_reaction_days=90)
REPO_A = Repository("a", "one")
REPO_B = Repository("b", "two")


def _issue(repo, number, total):
    return Issue(number=number, url=f"https://github.com/{repo.full_name}/issues/{number}",
                 title=f"#{number}", total_reaction_count=total)


class FakeGitHub:
    """Stands in for iter_issues / iter_reactions and records what was requested."""

    def __init__(self, issues, failing=()):
        self.issues = issues
        self.failing = set(failing)
        self.issues_yielded = []
        self.reaction_requests = []

    def iter_issues(self, repo, policy=None):
        for issue in self.issues.get(repo, []):
            self.issues_yielded.append((repo, issue.number))
            yield issue
        if repo in self.failing:
            raise SecondaryRateLimitError("secondary rate limit", url="u", status=403)

    def iter_reactions(self, repo, issue_number, policy=None):
        self.reaction_requests.append((repo, issue_number))
        yield Reaction(created_at=NOW - dt.timedelta(days=1))
        yield Reaction(created_at=NOW - dt.timedelta(days=120))


@pytest.fixture
def aggregator():
    return ReactionAggregator(CONFIG, clock=lambda: NOW)


def _patched(fake):
    return (
        patch("src.pipeline.runner.iter_issues", fake.iter_issues),
        patch("src.pipeline.runner.iter_reactions", fake.iter_reactions),
    )


def _run(fake, repos, aggregator, **kwargs):
    p1, p2 = _patched(fake)
    with p1, p2:
        return runner.collect_records(repos, CONFIG, aggregator=aggregator, **kwargs)


def test_threshold_filter_and_discovery_order(aggregator, capsys):
    fake = FakeGitHub({
        REPO_A: [_issue(REPO_A, 1, 30), _issue(REPO_A, 2, 9), _issue(REPO_A, 3, 10)],
        REPO_B: [_issue(REPO_B, 4, 100)],
    })
    collector = _run(fake, [REPO_A, REPO_B], aggregator)
    urls = [r.url for r in collector.records]
    assert urls == [
        "https://github.com/a/one/issues/1",
        "https://github.com/a/one/issues/3",
        "https://github.com/b/two/issues/4",
    ]
    assert (REPO_A, 2) not in fake.reaction_requests
    for record in collector.records:
        assert record.total_count >= CONFIG.min_reaction_count
        assert record.recent_count <= record.total_count
        assert record.recent_count == 1
    out = capsys.readouterr().out
    assert "https://github.com/a/one/issues/3" in out


def test_cap_halts_mid_repository(aggregator):
    fake = FakeGitHub({
        REPO_A: [_issue(REPO_A, n, 20) for n in range(1, 16)],
        REPO_B: [_issue(REPO_B, 99, 20)],
    })
    collector = _run(fake, [REPO_A, REPO_B], aggregator, collector=ResultCollector(max_records=10))
    assert len(collector) == 10
    assert collector.is_full
    assert len(fake.issues_yielded) == 10
    assert len(fake.reaction_requests) == 10
    assert all(repo == REPO_A for repo, _ in fake.issues_yielded)


def test_fetch_error_aborts_by_default(aggregator):
    fake = FakeGitHub({REPO_A: [_issue(REPO_A, 1, 20)], REPO_B: [_issue(REPO_B, 2, 20)]},
                      failing=[REPO_A])
    with pytest.raises(FetchError):
        _run(fake, [REPO_A, REPO_B], aggregator)
    assert (REPO_B, 2) not in fake.issues_yielded


def test_fetch_error_skip_mode_continues(aggregator, capsys):
    fake = FakeGitHub({REPO_A: [_issue(REPO_A, 1, 20)], REPO_B: [_issue(REPO_B, 2, 20)]},
                      failing=[REPO_A])
    collector = _run(fake, [REPO_A, REPO_B], aggregator, on_fetch_error="skip")
    assert [r.url for r in collector.records] == [
        "https://github.com/a/one/issues/1",
        "https://github.com/b/two/issues/2",
    ]
    assert "[skip] a/one" in capsys.readouterr().out


def test_resolve_repositories_prefers_overrides(monkeypatch):
    settings = runner.resolve_settings(runner.parse_args(["whatwg/html", "w3c/csswg-drafts", "whatwg/html"]))
    monkeypatch.setattr(runner, "load_registry", lambda source: pytest.fail("registry should not load"))
    repos = runner.resolve_repositories(settings)
    assert repos == [Repository("w3c", "csswg-drafts"), Repository("whatwg", "html")]


def test_resolve_repositories_reads_registry(monkeypatch):
    entries = [
        {"nightly": {"repository": "https://github.com/whatwg/html"}},
        {"nightly": {"repository": "https://github.com/whatwg/html"}},
        {"nightly": {"repository": "https://example.org/x/y"}},
    ]
    monkeypatch.setattr(runner, "load_registry", lambda source: entries)
    settings = runner.resolve_settings(runner.parse_args([]))
    assert runner.resolve_repositories(settings) == [Repository("whatwg", "html")]


def test_main_writes_outputs(tmp_path):
    fake = FakeGitHub({Repository("o", "r"): [_issue(Repository("o", "r"), 5, 12)]})
    p1, p2 = _patched(fake)
    with p1, p2:
        status = runner.main(["o/r", "--output-dir", str(tmp_path), "--format", "json", "--format", "csv"])
    assert status == 0
    data = json.loads((tmp_path / "issues.json").read_text(encoding="utf-8"))
    assert data[0]["url"] == "https://github.com/o/r/issues/5"
    assert data[0]["total_count"] == 12
    assert set(data[0]) == {"total_count", "recent_count", "url", "title"}
    assert (tmp_path / "issues.csv").read_text(encoding="utf-8") == "12,https://github.com/o/r/issues/5\n"


def test_main_returns_failure_on_fetch_error(tmp_path, capsys):
    fake = FakeGitHub({}, failing=[Repository("o", "r")])
    p1, p2 = _patched(fake)
    with p1, p2:
        status = runner.main(["o/r", "--output-dir", str(tmp_path)])
    assert status == 1
    assert not (tmp_path / "issues.json").exists()
    assert "[error]" in capsys.readouterr().out


@patch("src.pipeline.runner.load_registry")
def test_main_returns_failure_on_registry_error(mock_load, tmp_path):
    mock_load.side_effect = runner.RegistryError("bad registry")
    assert runner.main(["--output-dir", str(tmp_path)]) == 1


def test_main_rejects_negative_recent_days(tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        runner.main(["o/r", "--recent-days", "-5", "--output-dir", str(tmp_path)])
    assert excinfo.value.code == 2


def test_resolve_repositories_orders_overrides_by_url():
    settings = runner.resolve_settings(runner.parse_args(["w3c/webappsec", "w3c-fedid/FedCM"]))
    assert [r.full_name for r in runner.resolve_repositories(settings)] == [
        "w3c-fedid/FedCM",
        "w3c/webappsec",
    ]
