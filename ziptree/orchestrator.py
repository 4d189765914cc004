"""Pipeline orchestration for archive and GitHub analysis runs."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .categories import TEXT, is_sensitive_path
from .config import ZipTreeConfig
from .detectors.content import DANGER, SECRET, ContentScanner
from .detectors.metrics import FileMetrics, MetricsAggregator
from .detectors.signatures import BINARY_MISMATCH, EXTENSION_MISMATCH, validate_signature
from .errors import ArchiveTooLarge
from .ingest.archive import ArchiveUnpacker
from .ingest.github import GitHubFetcher, ProgressCallback
from .ingest.unifier import FileUnifier
from .logging import get_logger
from .models import (
    AnalysisResult,
    AnalysisStats,
    FileSignatureAlert,
    SecurityIssue,
    UnifiedFile,
)
from .scoring import calculate_score, detect_zip_bomb
from .tree import build_tree, count_folders, iter_nodes, render_ascii

SOURCE_ZIP = "zip"
SOURCE_GITHUB = "github"

ENV_TOKEN_KEYS = ("ZIPTREE_GITHUB_TOKEN", "GITHUB_TOKEN")

_HIGH_RISK_ISSUES = {DANGER, SECRET}
_HIGH_RISK_ALERTS = {EXTENSION_MISMATCH, BINARY_MISMATCH}


@dataclass
class _FileScan:
    """Everything the detectors produced for one file."""

    issues: List[SecurityIssue]
    alerts: List[FileSignatureAlert]
    metrics: FileMetrics


class Orchestrator:
    """Sequences ingestion, tree construction, detectors and scoring."""

    def __init__(
        self,
        config: ZipTreeConfig | None = None,
        *,
        unpacker: ArchiveUnpacker | None = None,
        unifier: FileUnifier | None = None,
        fetcher: GitHubFetcher | None = None,
        scanner: ContentScanner | None = None,
        metrics: MetricsAggregator | None = None,
    ) -> None:
        self.config = config or ZipTreeConfig()
        limits = self.config.limits
        self.unpacker = unpacker or ArchiveUnpacker()
        self.unifier = unifier or FileUnifier(limits, self.config.archive)
        self.fetcher = fetcher or GitHubFetcher(self.config.remote, unifier=self.unifier)
        self.scanner = scanner or ContentScanner(max_line_length=limits.max_line_length)
        self.metrics = metrics or MetricsAggregator(limits)
        self.logger = get_logger("orchestrator")

    def analyze_archive(self, data: bytes) -> AnalysisResult:
        """Analyse zip bytes."""
        self.logger.info("Starting archive analysis (%d bytes)", len(data))
        limit = self.config.limits.max_archive_bytes
        if len(data) > limit:
            raise ArchiveTooLarge(f"Archive is {len(data)} bytes; the limit is {limit} bytes.")
        with self.unpacker.unpack(data) as entries:
            source = self.unifier.from_archive(entries)
        total_size = sum(file.size for file in source.files)

        extra_alerts: List[FileSignatureAlert] = []
        bomb = detect_zip_bomb(total_size, len(data), ratio=self.config.limits.zip_bomb_ratio)
        if bomb is not None:
            self.logger.warning("Zip bomb indicator: %s", bomb.details)
            extra_alerts.append(bomb)

        return self._run_security_scan(
            source.files,
            source.folders,
            source_kind=SOURCE_ZIP,
            total_size=total_size,
            extra_alerts=extra_alerts,
        )

    def analyze_archive_file(self, path: str | Path) -> AnalysisResult:
        archive_path = Path(path).expanduser()
        if not archive_path.is_file():
            raise FileNotFoundError(f"Archive not found: {path}")
        return self.analyze_archive(archive_path.read_bytes())

    def analyze_github(
        self,
        reference: str,
        token: str | None = None,
        progress: ProgressCallback | None = None,
    ) -> AnalysisResult:
        """Analyse a GitHub repository from its listing plus the eagerly fetched subset."""
        token = token or _first_env_value(ENV_TOKEN_KEYS)
        self.logger.info("Starting GitHub analysis for %s", reference)
        listing = self.fetcher.fetch(reference, token=token, progress=progress)
        return self._run_security_scan(
            listing.files,
            listing.folders,
            source_kind=SOURCE_GITHUB,
            total_size=listing.total_size,
            listing_truncated=listing.truncated,
            reference=listing.reference.slug,
        )

    def load_file_content(
        self, result: AnalysisResult, path: str, token: str | None = None
    ) -> AnalysisResult:
        """Fetch one deferred file and return a revised result.

        The input result is left untouched. Issues, alerts, score and stats
        are carried over as they were; rerun the analysis to rescore.
        """
        file = result.get_file(path)
        if file is None:
            raise KeyError(path)
        if not file.is_deferred or file.remote_locator is None:
            return result

        token = token or _first_env_value(ENV_TOKEN_KEYS)
        raw = self.fetcher.fetch_content(file.remote_locator, token)
        updated = self.unifier.with_content(file, raw)

        files = [updated if item.path == path else item for item in result.files]
        folders = [node.path for node in iter_nodes(result.tree) if node.is_folder]
        risk_levels = {
            node.path: node.risk_level for node in iter_nodes(result.tree) if not node.is_folder
        }
        tree = build_tree(files, folders, risk_levels)
        return replace(result, files=files, tree=tree, ascii_tree=render_ascii(tree))

    # ------------------------------------------------------------------
    # Pipeline

    def _run_security_scan(
        self,
        files: Sequence[UnifiedFile],
        folders: Sequence[str],
        *,
        source_kind: str,
        total_size: int,
        extra_alerts: Sequence[FileSignatureAlert] = (),
        listing_truncated: bool = False,
        reference: Optional[str] = None,
    ) -> AnalysisResult:
        issues: List[SecurityIssue] = []
        alerts: List[FileSignatureAlert] = []
        totals = FileMetrics()

        for file in files:
            scan = self._scan_file(file)
            issues.extend(scan.issues)
            alerts.extend(scan.alerts)
            totals = totals.merge(scan.metrics)
        alerts.extend(extra_alerts)

        score = calculate_score(issues, alerts)
        self.logger.info(
            "Scanned %d of %d files: %d issues, %d alerts, score %d (%s)",
            totals.scanned,
            len(files),
            len(issues),
            len(alerts),
            score.score,
            score.status,
        )

        tree = build_tree(files, folders, _risk_levels(files, issues, alerts))
        stats = AnalysisStats(
            total_files=len(files),
            total_folders=count_folders(tree),
            total_size=total_size,
            total_loc=totals.loc,
            complexity=totals.complexity,
            max_depth=totals.max_depth,
            scanned_files=totals.scanned,
            deferred_files=totals.deferred,
            extensions=dict(sorted(totals.extensions.items())),
            sensitive_files=sorted(file.path for file in files if is_sensitive_path(file.path)),
        )

        return AnalysisResult(
            source=source_kind,
            files=list(files),
            tree=tree,
            issues=issues,
            alerts=alerts,
            score=score,
            stats=stats,
            ascii_tree=render_ascii(tree),
            listing_truncated=listing_truncated,
            reference=reference,
        )

    def _scan_file(self, file: UnifiedFile) -> _FileScan:
        alerts: List[FileSignatureAlert] = []
        issues: List[SecurityIssue] = []

        if file.binary is not None:
            header = file.binary[: self.config.limits.signature_header_bytes]
            signature_alert = validate_signature(file.path, header, file.extension)
            if signature_alert is not None:
                alerts.append(signature_alert)

        metrics, size_alerts = self.metrics.measure(file)
        alerts.extend(size_alerts)

        if file.category == TEXT and file.content is not None:
            issues.extend(self.scanner.scan(file.path, file.content))

        return _FileScan(issues=issues, alerts=alerts, metrics=metrics)


def _risk_levels(
    files: Sequence[UnifiedFile],
    issues: Sequence[SecurityIssue],
    alerts: Sequence[FileSignatureAlert],
) -> Dict[str, str]:
    levels: Dict[str, str] = {file.path: "none" for file in files}
    for issue in issues:
        if issue.category in _HIGH_RISK_ISSUES:
            levels[issue.path] = "high"
        elif levels.get(issue.path) == "none":
            levels[issue.path] = "low"
    for alert in alerts:
        if alert.path not in levels:
            continue
        if alert.kind in _HIGH_RISK_ALERTS:
            levels[alert.path] = "high"
        elif levels[alert.path] == "none":
            levels[alert.path] = "low"
    return levels


def _first_env_value(keys: Sequence[str]) -> str | None:
    for key in keys:
        value = os.getenv(key)
        if value:
            return value
    return None


__all__ = ["Orchestrator", "SOURCE_GITHUB", "SOURCE_ZIP"]
