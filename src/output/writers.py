"""Render collected records as JSON, CSV and an HTML report."""

from __future__ import annotations

import csv
import datetime as dt
import json
import os
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

from jinja2 import Environment

from src.retrieval.models import AggregatedRecord

GITHUB_PREFIX = "https://github.com/"

FILENAMES = {
    "json": "issues.json",
    "csv": "issues.csv",
    "html": "index.html",
}


def ensure_dir(path: str | Path) -> None:
    """Create output directories as-needed without raising for existing folders."""
    os.makedirs(path, exist_ok=True)


def save_json(path: str | Path, data: Any) -> None:
    """Write JSON to disk using UTF-8, two-space indent and a trailing newline."""
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
        f.write("\n")


def rank_records(records: Iterable[AggregatedRecord]) -> List[AggregatedRecord]:
    """Order by total reactions, descending; ties keep discovery order."""
    return sorted(records, key=lambda r: r.total_count, reverse=True)


def write_json(path: str | Path, records: Sequence[AggregatedRecord]) -> None:
    save_json(path, [record.to_dict() for record in records])


def write_csv(path: str | Path, records: Sequence[AggregatedRecord]) -> None:
    """One `count,url` line per record, most reacted first."""
    with open(path, "w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f, lineterminator="\n")
        for record in rank_records(records):
            writer.writerow([record.total_count, record.url])


def pretty_issue_label(url: str) -> str:
    """Shorten https://github.com/owner/repo/issues/N to owner/repo#N."""
    if not url.startswith(GITHUB_PREFIX):
        return url
    parts = url[len(GITHUB_PREFIX):].split("/")
    if len(parts) != 4:
        return url
    return f"{parts[0]}/{parts[1]}#{parts[3]}"


HTML_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>Spec issues by reactions</title>
<style>
body { font-family: system-ui, sans-serif; margin: 2em; }
table { border-collapse: collapse; }
th, td { padding: 0.25em 0.75em; text-align: left; }
td.total, td.recent { text-align: right; }
</style>
</head>
<body>
<h1>Spec issues by reactions</h1>
<p>{{ issues | length }} issues, generated {{ generated_at.strftime("%Y-%m-%d %H:%M UTC") }}.</p>
<table id="reactions">
<thead><tr><th>Total</th><th>Recent</th><th>Issue</th><th>Title</th></tr></thead>
<tbody>
{% for issue in issues %}
<tr><td class="total">{{ issue.total_count }}</td><td class="recent">{{ issue.recent_count }}</td><td><a href="{{ issue.url }}">{{ issue.url | pretty }}</a></td><td class="title">{{ issue.title }}</td></tr>
{% endfor %}
</tbody>
</table>
</body>
</html>
"""

_ENV = Environment(autoescape=True, trim_blocks=True, lstrip_blocks=True)
_ENV.filters["pretty"] = pretty_issue_label


def render_html(records: Sequence[AggregatedRecord], generated_at: Optional[dt.datetime] = None) -> str:
    """Render the ranked report; titles and URLs are autoescaped."""
    template = _ENV.from_string(HTML_TEMPLATE)
    return template.render(
        issues=rank_records(records),
        generated_at=generated_at or dt.datetime.now(dt.timezone.utc),
    )


def write_html(path: str | Path, records: Sequence[AggregatedRecord]) -> None:
    with open(path, "w", encoding="utf-8") as f:
        f.write(render_html(records))


WRITERS = {
    "json": write_json,
    "csv": write_csv,
    "html": write_html,
}


def write_outputs(records: Sequence[AggregatedRecord],
                  out_dir: str | Path,
                  formats: Iterable[str] = ("json",)) -> Dict[str, Path]:
    """Write each requested format into `out_dir`; returns format -> path."""
    ensure_dir(out_dir)
    written: Dict[str, Path] = {}
    for fmt in formats:
        if fmt not in WRITERS:
            raise ValueError(f"Unknown output format: {fmt}")
        path = Path(out_dir) / FILENAMES[fmt]
        WRITERS[fmt](path, records)
        written[fmt] = path
    return written


__all__ = [
    "FILENAMES",
    "ensure_dir",
    "save_json",
    "rank_records",
    "write_json",
    "write_csv",
    "pretty_issue_label",
    "render_html",
    "write_html",
    "write_outputs",
]
