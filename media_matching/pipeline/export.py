# media_matching/pipeline/export.py
from __future__ import annotations

import csv
import io
from typing import Sequence

from media_matching.reporter_matching.models import ReporterResult

CSV_HEADERS = [
    "Rank",
    "Name",
    "Outlet",
    "Match Score",
    "Email",
    "LinkedIn",
    "Twitter",
    "Justification",
    "Recent Articles",
]


def reporters_to_csv(reporters: Sequence[ReporterResult]) -> str:
    """Media list as CSV; every cell quoted, article URLs joined with ' | '."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for reporter in reporters:
        writer.writerow(
            [
                reporter.rank,
                reporter.name,
                reporter.outlet,
                reporter.match_score,
                reporter.email or "",
                reporter.linkedin or "",
                reporter.twitter or "",
                reporter.justification or "",
                " | ".join(a.url or "" for a in reporter.recent_articles),
            ]
        )
    return buffer.getvalue()


def reporters_to_email_string(reporters: Sequence[ReporterResult]) -> str:
    """'Name <email>' pairs joined with '; ', reporters without email skipped."""
    return "; ".join(f"{r.name} <{r.email}>" for r in reporters if r.email)
