"""CLI entrypoints for ziptree commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .config import ConfigError, load_config
from .errors import ZipTreeError
from .export import build_review_prompt, format_bytes, result_to_dict
from .logging import configure_logging
from .models import AnalysisResult
from .orchestrator import Orchestrator
from .scoring import HIGH_RISK
from .tree import filter_tree, render_ascii

EXIT_HIGH_RISK = 2


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument("-v", "--verbose", **kwargs)


def _add_output_options(parser: argparse.ArgumentParser) -> None:
    _add_verbose_option(parser, suppress_default=True)
    output = parser.add_mutually_exclusive_group()
    output.add_argument(
        "--json",
        action="store_true",
        help="Print the analysis as JSON (file contents are never included).",
    )
    output.add_argument(
        "--prompt",
        action="store_true",
        help="Print a review prompt combining the tree and the security summary.",
    )
    parser.add_argument(
        "--filter",
        dest="filter_term",
        default="",
        help="Only show tree entries whose names contain this term.",
    )
    parser.add_argument(
        "--no-tree",
        action="store_true",
        help="Omit the ASCII tree from the text report.",
    )
    parser.add_argument(
        "--fail-on-risk",
        action="store_true",
        help=f"Exit with status {EXIT_HIGH_RISK} when the result is high-risk.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ziptree",
        description="Reconstruct the tree of a zip archive or GitHub repository and audit it.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a .ziptree.yml file or the directory holding it.",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write debug-level logs to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    archive_parser = subparsers.add_parser("archive", help="Analyse a local zip archive.")
    archive_parser.add_argument("path", help="Path to the .zip file.")
    _add_output_options(archive_parser)

    github_parser = subparsers.add_parser("github", help="Analyse a GitHub repository.")
    github_parser.add_argument(
        "reference",
        help="Repository URL (https://github.com/owner/repo[/tree/branch]) or owner/repo.",
    )
    github_parser.add_argument(
        "--token",
        default=None,
        help="GitHub token (defaults to $ZIPTREE_GITHUB_TOKEN or $GITHUB_TOKEN).",
    )
    _add_output_options(github_parser)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP service.")
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for ziptree commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    machine_output = bool(getattr(args, "json", False) or getattr(args, "prompt", False))
    configure_logging(
        verbose=bool(args.verbose), quiet=machine_output, log_file=args.log_file
    )

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    if args.command == "serve":
        from .service import run_service

        run_service(host=args.host, port=args.port, config=config)
        return

    orchestrator = Orchestrator(config)
    try:
        if args.command == "archive":
            result = orchestrator.analyze_archive_file(args.path)
        elif args.command == "github":
            result = orchestrator.analyze_github(args.reference, token=args.token)
        else:  # pragma: no cover - argparse enforces choices
            parser.exit(1, "Unknown command\n")
    except FileNotFoundError as exc:
        parser.exit(1, f"{exc}\n")
    except ZipTreeError as exc:
        parser.exit(1, f"ziptree {args.command} failed: {exc}\n")

    if args.json:
        print(json.dumps(result_to_dict(result, include_tree=not args.no_tree), indent=2))
    elif args.prompt:
        print(build_review_prompt(result))
    else:
        print(_format_report(result, filter_term=args.filter_term, show_tree=not args.no_tree))

    if args.fail_on_risk and result.score.status == HIGH_RISK:
        sys.exit(EXIT_HIGH_RISK)


def _format_report(result: AnalysisResult, *, filter_term: str, show_tree: bool) -> str:
    score = result.score
    stats = result.stats
    lines = [
        f"Score: {score.score}/100 ({score.status})",
        (
            f"Files: {stats.total_files} | Folders: {stats.total_folders} | "
            f"Size: {format_bytes(stats.total_size)} | LOC: {stats.total_loc} | "
            f"Complexity: {stats.complexity} | Max depth: {stats.max_depth}"
        ),
    ]
    if stats.deferred_files:
        lines.append(f"Deferred (not scanned): {stats.deferred_files} files")
    if result.listing_truncated:
        lines.append("Warning: the provider truncated the file listing.")
    if stats.sensitive_files:
        lines.append(f"Sensitive files: {', '.join(stats.sensitive_files)}")

    if result.issues:
        lines.extend(["", "Issues:"])
        for issue in result.issues:
            lines.append(
                f"  [{issue.category.upper()}] {issue.path}:{issue.line} - {issue.issue}"
            )
    if result.alerts:
        lines.extend(["", "Alerts:"])
        for alert in result.alerts:
            lines.append(f"  [{alert.kind}] {alert.path} - {alert.details}")

    if show_tree:
        tree = filter_tree(result.tree, filter_term)
        lines.extend(["", "Tree:", render_ascii(tree).rstrip("\n") or "(no matching entries)"])

    return "\n".join(lines)


if __name__ == "__main__":
    main(sys.argv[1:])
