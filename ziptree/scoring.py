"""Risk score computation."""

from __future__ import annotations

from typing import Dict, Iterable, Optional

from .models import FileSignatureAlert, ScoreCounts, SecurityIssue, SecurityScore

CLEAN = "clean"
WARNING = "warning"
HIGH_RISK = "high-risk"

ZIP_BOMB = "zip-bomb-indicator"
ARCHIVE_ROOT = "/"

_PENALTIES = {
    "dangerous": 15,
    "secrets": 10,
    "obfuscation": 5,
    "mismatches": 10,
    "zipbomb": 20,
    "todos": 1,
}

_ISSUE_BUCKETS = {
    "secret": "secrets",
    "danger": "dangerous",
    "obfuscation": "obfuscation",
    "todo": "todos",
}

_ALERT_BUCKETS = {
    "extension-mismatch": "mismatches",
    "binary-mismatch": "mismatches",
    ZIP_BOMB: "zipbomb",
}


def calculate_score(
    issues: Iterable[SecurityIssue], alerts: Iterable[FileSignatureAlert]
) -> SecurityScore:
    """Reduce findings to a 0-100 score and a status tier.

    Any dangerous call or secret forces ``high-risk`` no matter how high the
    numeric score is.
    """
    tallies: Dict[str, int] = {bucket: 0 for bucket in _PENALTIES}
    for issue in issues:
        bucket = _ISSUE_BUCKETS.get(issue.category)
        if bucket:
            tallies[bucket] += 1
    for alert in alerts:
        bucket = _ALERT_BUCKETS.get(alert.kind)
        if bucket:
            tallies[bucket] += 1

    score = 100 - sum(tallies[bucket] * penalty for bucket, penalty in _PENALTIES.items())
    score = max(0, min(100, score))

    if tallies["dangerous"] or tallies["secrets"] or score < 50:
        status = HIGH_RISK
    elif score < 80:
        status = WARNING
    else:
        status = CLEAN

    return SecurityScore(score=score, status=status, counts=ScoreCounts(**tallies))


def detect_zip_bomb(
    total_uncompressed: int, compressed_size: int, *, ratio: float = 100.0
) -> Optional[FileSignatureAlert]:
    """Flag archives whose expansion ratio exceeds ``ratio``."""
    if compressed_size <= 0:
        return None
    actual = total_uncompressed / compressed_size
    if actual <= ratio:
        return None
    return FileSignatureAlert(
        path=ARCHIVE_ROOT,
        kind=ZIP_BOMB,
        details=(
            f"Archive expands {actual:.0f}x ({total_uncompressed} bytes from "
            f"{compressed_size} compressed bytes)"
        ),
    )


__all__ = [
    "ARCHIVE_ROOT",
    "CLEAN",
    "HIGH_RISK",
    "WARNING",
    "ZIP_BOMB",
    "calculate_score",
    "detect_zip_bomb",
]
