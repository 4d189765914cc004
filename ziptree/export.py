"""Serialisable views of an analysis result."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List

from .models import AnalysisResult, TreeNode, UnifiedFile

_UNITS = ("Bytes", "KB", "MB", "GB", "TB")


def result_to_dict(result: AnalysisResult, *, include_tree: bool = True) -> Dict[str, Any]:
    """Return metadata and findings only; file contents and raw bytes never leave."""
    payload: Dict[str, Any] = {
        "source": result.source,
        "reference": result.reference,
        "listing_truncated": result.listing_truncated,
        "score": {
            "score": result.score.score,
            "status": result.score.status,
            "counts": asdict(result.score.counts),
        },
        "stats": asdict(result.stats),
        "issues": [asdict(issue) for issue in result.issues],
        "alerts": [asdict(alert) for alert in result.alerts],
        "files": [_file_to_dict(file) for file in result.files],
    }
    if include_tree:
        payload["tree"] = [_node_to_dict(node) for node in result.tree]
        payload["ascii_tree"] = result.ascii_tree
    return payload


def _file_to_dict(file: UnifiedFile) -> Dict[str, Any]:
    return {
        "path": file.path,
        "name": file.name,
        "extension": file.extension,
        "size": file.size,
        "depth": file.depth,
        "category": file.category,
        "loaded": file.is_loaded,
        "deferred": file.is_deferred,
        "remote_locator": file.remote_locator,
    }


def _node_to_dict(node: TreeNode) -> Dict[str, Any]:
    data: Dict[str, Any] = {"name": node.name, "path": node.path, "type": node.kind}
    if node.children is not None:
        data["children"] = [_node_to_dict(child) for child in node.children]
    else:
        data["risk_level"] = node.risk_level
    return data


def build_review_prompt(result: AnalysisResult) -> str:
    """Compose a prompt asking an AI reviewer to assess structure and risk."""
    counts = result.score.counts
    summary: List[str] = [
        f"Security Score: {result.score.score}/100 ({result.score.status})",
        "Findings:",
        f"- Secrets: {counts.secrets}",
        f"- Dangerous Functions: {counts.dangerous}",
        f"- Obfuscation: {counts.obfuscation}",
        f"- Alerts: {counts.mismatches}",
    ]
    if result.stats.sensitive_files:
        summary.append(f"- Sensitive files: {', '.join(result.stats.sensitive_files)}")

    return (
        "I am working on a project with the following file structure and security analysis.\n"
        "Please review architecture, risks, and organisation.\n"
        "\n"
        "<file_structure>\n"
        f"{result.ascii_tree}"
        "</file_structure>\n"
        "\n"
        "<security_summary>\n"
        f"{chr(10).join(summary)}\n"
        "</security_summary>\n"
        "\n"
        "Please provide a detailed technical assessment."
    )


def format_bytes(size: int, decimals: int = 2) -> str:
    """Human-readable byte count (``1.5 KB``)."""
    if size <= 0:
        return "0 Bytes"
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(_UNITS) - 1:
        value /= 1024
        unit += 1
    rendered = f"{value:.{max(decimals, 0)}f}"
    if "." in rendered:
        rendered = rendered.rstrip("0").rstrip(".")
    return f"{rendered} {_UNITS[unit]}"


__all__ = ["build_review_prompt", "format_bytes", "result_to_dict"]
