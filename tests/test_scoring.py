from __future__ import annotations

import pytest

from ziptree.models import FileSignatureAlert, ScoreCounts, SecurityIssue
from ziptree.scoring import (
    ARCHIVE_ROOT,
    CLEAN,
    HIGH_RISK,
    WARNING,
    ZIP_BOMB,
    calculate_score,
    detect_zip_bomb,
)


def _issues(category: str, count: int):
    return [SecurityIssue("f", index + 1, category, "label", "ctx") for index in range(count)]


def _alerts(kind: str, count: int):
    return [FileSignatureAlert(f"f{index}", kind, "details") for index in range(count)]


def test_no_findings_is_clean() -> None:
    score = calculate_score([], [])

    assert score.score == 100
    assert score.status == CLEAN
    assert score.counts == ScoreCounts()


def test_penalties_per_category() -> None:
    score = calculate_score(
        _issues("obfuscation", 1) + _issues("todo", 3),
        _alerts("extension-mismatch", 1) + _alerts("binary-mismatch", 1),
    )

    assert score.score == 100 - 5 - 3 - 20
    assert score.status == WARNING
    assert score.counts == ScoreCounts(obfuscation=1, todos=3, mismatches=2)


def test_single_secret_forces_high_risk_despite_high_score() -> None:
    score = calculate_score(_issues("secret", 1), [])

    assert score.score == 90
    assert score.status == HIGH_RISK


def test_single_dangerous_call_forces_high_risk() -> None:
    score = calculate_score(_issues("danger", 1), [])

    assert score.score == 85
    assert score.status == HIGH_RISK


def test_score_is_clamped_at_zero() -> None:
    score = calculate_score(_issues("danger", 10), [])

    assert score.score == 0
    assert score.counts.dangerous == 10


@pytest.mark.parametrize(
    "todos, status",
    [(20, CLEAN), (21, WARNING), (50, WARNING), (51, HIGH_RISK)],
)
def test_status_thresholds(todos, status) -> None:
    assert calculate_score(_issues("todo", todos), []).status == status


def test_large_file_alerts_do_not_affect_score() -> None:
    assert calculate_score([], _alerts("large-file", 5)).score == 100


def test_zip_bomb_alert_costs_twenty() -> None:
    score = calculate_score([], _alerts(ZIP_BOMB, 1))

    assert score.score == 80
    assert score.counts.zipbomb == 1
    assert score.status == CLEAN


def test_detect_zip_bomb_above_ratio() -> None:
    alert = detect_zip_bomb(10_001, 100)

    assert alert is not None
    assert alert.kind == ZIP_BOMB
    assert alert.path == ARCHIVE_ROOT


def test_detect_zip_bomb_at_or_below_ratio() -> None:
    assert detect_zip_bomb(10_000, 100) is None
    assert detect_zip_bomb(500, 100, ratio=4) is not None
    assert detect_zip_bomb(100, 0) is None
