"""Core data models shared across ziptree components."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

FOLDER = "folder"
FILE = "file"


@dataclass(frozen=True)
class UnifiedFile:
    """One archive or repository member, whatever source it came from."""

    path: str
    name: str
    extension: str
    size: int
    depth: int
    category: str
    content: Optional[str] = field(default=None, repr=False)
    binary: Optional[bytes] = field(default=None, repr=False)
    remote_locator: Optional[str] = None

    @property
    def is_deferred(self) -> bool:
        """True when content still lives behind a remote locator."""
        return self.remote_locator is not None and self.content is None

    @property
    def is_loaded(self) -> bool:
        return self.content is not None or self.binary is not None


@dataclass
class TreeNode:
    """Folder or file vertex in the reconstructed hierarchy."""

    name: str
    path: str
    kind: str
    children: Optional[List["TreeNode"]] = None
    # Non-owning: the flat file list owns the record, the tree only points at it.
    file_data: Optional[UnifiedFile] = field(default=None, repr=False, compare=False)
    risk_level: str = "none"

    @property
    def is_folder(self) -> bool:
        return self.kind == FOLDER


@dataclass(frozen=True)
class SecurityIssue:
    """A single content-scanner finding."""

    path: str
    line: int
    category: str
    issue: str
    context: str


@dataclass(frozen=True)
class FileSignatureAlert:
    """A signature, size or archive-level alert."""

    path: str
    kind: str
    details: str


@dataclass(frozen=True)
class ScoreCounts:
    """Per-category tallies feeding the risk score."""

    secrets: int = 0
    dangerous: int = 0
    obfuscation: int = 0
    todos: int = 0
    mismatches: int = 0
    zipbomb: int = 0


@dataclass(frozen=True)
class SecurityScore:
    """Numeric score with its status tier."""

    score: int
    status: str
    counts: ScoreCounts


@dataclass(frozen=True)
class AnalysisStats:
    """Aggregate repository statistics."""

    total_files: int
    total_folders: int
    total_size: int
    total_loc: int
    complexity: int
    max_depth: int
    scanned_files: int
    deferred_files: int
    extensions: Dict[str, int]
    sensitive_files: List[str]


@dataclass(frozen=True)
class AnalysisResult:
    """Everything one analysis run produced."""

    source: str
    files: List[UnifiedFile]
    tree: List[TreeNode]
    issues: List[SecurityIssue]
    alerts: List[FileSignatureAlert]
    score: SecurityScore
    stats: AnalysisStats
    ascii_tree: str
    listing_truncated: bool = False
    reference: Optional[str] = None

    def get_file(self, path: str) -> Optional[UnifiedFile]:
        for file in self.files:
            if file.path == path:
                return file
        return None

    def issues_for(self, path: str) -> List[SecurityIssue]:
        return [issue for issue in self.issues if issue.path == path]
