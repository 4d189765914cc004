"""Line counts, control-flow density and per-extension tallies."""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field
from typing import List, Tuple

from ..categories import TEXT
from ..config import LimitsConfig
from ..models import FileSignatureAlert, UnifiedFile

LARGE_FILE = "large-file"

# Rough proxy only: keywords, ternaries and short-circuit operators.
_COMPLEXITY_PATTERNS = tuple(
    re.compile(pattern)
    for pattern in (
        r"\bif\b",
        r"\belse\b",
        r"\bfor\b",
        r"\bwhile\b",
        r"\bswitch\b",
        r"\bcase\b",
        r"\bcatch\b",
        r"\?\s*:",
        r"&&",
        r"\|\|",
    )
)


def count_lines(content: str) -> int:
    """Number of lines, not counting the empty remainder after a final newline."""
    if not content:
        return 0
    lines = content.count("\n")
    return lines if content.endswith("\n") else lines + 1


def measure_complexity(content: str) -> int:
    return sum(len(pattern.findall(content)) for pattern in _COMPLEXITY_PATTERNS)


@dataclass
class FileMetrics:
    """Additive metrics; ``merge`` is associative and commutative."""

    files: int = 0
    loc: int = 0
    complexity: int = 0
    max_depth: int = 0
    scanned: int = 0
    deferred: int = 0
    extensions: Counter = field(default_factory=Counter)

    def merge(self, other: "FileMetrics") -> "FileMetrics":
        return FileMetrics(
            files=self.files + other.files,
            loc=self.loc + other.loc,
            complexity=self.complexity + other.complexity,
            max_depth=max(self.max_depth, other.max_depth),
            scanned=self.scanned + other.scanned,
            deferred=self.deferred + other.deferred,
            extensions=self.extensions + other.extensions,
        )


class MetricsAggregator:
    """Measures one file at a time; callers fold results with ``FileMetrics.merge``."""

    def __init__(self, limits: LimitsConfig | None = None) -> None:
        self.limits = limits or LimitsConfig()

    def measure(self, file: UnifiedFile) -> Tuple[FileMetrics, List[FileSignatureAlert]]:
        metrics = FileMetrics(
            files=1,
            max_depth=file.depth,
            deferred=1 if file.is_deferred else 0,
            extensions=Counter({file.extension: 1}),
        )
        alerts: List[FileSignatureAlert] = []

        if file.size > self.limits.large_file_bytes:
            alerts.append(
                FileSignatureAlert(
                    path=file.path,
                    kind=LARGE_FILE,
                    details=f"File is large ({file.size / 1024 / 1024:.2f}MB)",
                )
            )

        if file.category == TEXT and file.content is not None:
            lines = count_lines(file.content)
            metrics.loc = lines
            metrics.complexity = measure_complexity(file.content)
            metrics.scanned = 1
            if lines > self.limits.large_file_lines:
                alerts.append(
                    FileSignatureAlert(
                        path=file.path,
                        kind=LARGE_FILE,
                        details=f"Text file has > {self.limits.large_file_lines} lines ({lines})",
                    )
                )

        return metrics, alerts


__all__ = [
    "FileMetrics",
    "LARGE_FILE",
    "MetricsAggregator",
    "count_lines",
    "measure_complexity",
]
