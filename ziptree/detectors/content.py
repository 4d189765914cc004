"""Line-oriented regex detectors for secrets, dangerous calls, obfuscation and TODO markers."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Pattern, Sequence, Tuple

from ..models import SecurityIssue

DANGER = "danger"
SECRET = "secret"
OBFUSCATION = "obfuscation"
TODO = "todo"

REDACTED = "REDACTED"
DEFAULT_MAX_LINE_LENGTH = 2000
_OBFUSCATION_CONTEXT_CHARS = 50


@dataclass(frozen=True)
class Detector:
    """A compiled pattern with the label reported when it matches."""

    category: str
    pattern: Pattern[str]
    label: str


def _detectors(category: str, specs: Sequence[Tuple[str, str]]) -> Tuple[Detector, ...]:
    return tuple(Detector(category, re.compile(regex), label) for regex, label in specs)


DANGER_DETECTORS = _detectors(
    DANGER,
    (
        (r"eval\s*\(", "Dangerous Eval usage"),
        (r"new\s+Function\s*\(", "Dangerous Function constructor"),
        (r"setTimeout\s*\(\s*['\"`]", "String-based setTimeout (eval-like)"),
        (r"setInterval\s*\(\s*['\"`]", "String-based setInterval (eval-like)"),
        (r"child_process", "Node.js child_process access"),
        (r"\bsubprocess\.(?:Popen|call|run|check_call|check_output)\s*\(", "Python subprocess spawn"),
        (r"\bos\.system\s*\(", "Shell command via os.system"),
    ),
)

OBFUSCATION_DETECTORS = _detectors(
    OBFUSCATION,
    (
        (r"atob\s*\(", "Base64 decoding (atob)"),
        (r"btoa\s*\(", "Base64 encoding (btoa)"),
        (r"\bbase64\.b64(?:en|de)code\s*\(", "Base64 encoding/decoding (base64 module)"),
        (r"[A-Za-z0-9+/=]{200,}", "Suspiciously long Base64 string"),
        (r"\\x[0-9A-Fa-f]{2}.{0,5}\\x[0-9A-Fa-f]{2}", "Hex encoding detected"),
    ),
)

SECRET_DETECTORS = _detectors(
    SECRET,
    (
        (r"(?:AWS|aws|Aws)_?(?:ACCESS|SECRET|access|secret)_?(?:KEY|key)", "Possible AWS Key"),
        (r"sk_live_[0-9a-zA-Z]{24}", "Stripe Live Key"),
        (r"sk_test_[0-9a-zA-Z]{24}", "Stripe Test Key"),
        (r"-----BEGIN (?:RSA |EC |DSA |OPENSSH )?PRIVATE KEY-----", "Private Key Block"),
        (r"Authorization:\s*['\"`]?Bearer", "Hardcoded Bearer Token"),
        (r"ghp_[0-9a-zA-Z]{36}", "GitHub Personal Access Token"),
    ),
)

TODO_DETECTORS = _detectors(
    TODO,
    (
        (r"(?://|#|/\*)\s*TODO", "TODO Comment"),
        (r"(?://|#|/\*)\s*FIXME", "FIXME Comment"),
        (r"(?://|#|/\*)\s*HACK", "HACK Comment"),
    ),
)

DEFAULT_DETECTORS: Tuple[Detector, ...] = (
    *DANGER_DETECTORS,
    *OBFUSCATION_DETECTORS,
    *SECRET_DETECTORS,
    *TODO_DETECTORS,
)


class ContentScanner:
    """Runs every detector over every line of a text file."""

    def __init__(
        self,
        *,
        max_line_length: int = DEFAULT_MAX_LINE_LENGTH,
        detectors: Sequence[Detector] = DEFAULT_DETECTORS,
    ) -> None:
        self.max_line_length = max_line_length
        self.detectors = tuple(detectors)

    def scan(self, path: str, content: str) -> List[SecurityIssue]:
        """Return one issue per detector match, in line order.

        Lines longer than ``max_line_length`` are skipped entirely so a
        minified or hostile single-line file cannot stall the run.
        """
        issues: List[SecurityIssue] = []
        for index, line in enumerate(content.split("\n"), start=1):
            if len(line) > self.max_line_length:
                continue
            for detector in self.detectors:
                if detector.pattern.search(line):
                    issues.append(
                        SecurityIssue(
                            path=path,
                            line=index,
                            category=detector.category,
                            issue=detector.label,
                            context=_context(detector.category, line),
                        )
                    )
        return issues


def _context(category: str, line: str) -> str:
    if category == SECRET:
        return REDACTED
    stripped = line.strip()
    if category == OBFUSCATION:
        return stripped[:_OBFUSCATION_CONTEXT_CHARS] + "..."
    return stripped


__all__ = [
    "DANGER",
    "DEFAULT_DETECTORS",
    "ContentScanner",
    "Detector",
    "OBFUSCATION",
    "REDACTED",
    "SECRET",
    "TODO",
]
