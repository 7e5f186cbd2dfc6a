"""
Uppercase diagnostic scanner.

Reports every word made of two or more uppercase ASCII letters. This is a
purely lexical pass over the text: string literals, comments and identifiers
are treated alike.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from lsprotocol.types import DiagnosticSeverity

from sentinells.workspace.settings import Settings


# Word boundaries are ASCII-only so that e.g. "éFOO" still reports "FOO"
UPPERCASE_RUN = re.compile(r"\b[A-Z]{2,}\b", re.ASCII)

DIAGNOSTIC_SOURCE = "ex"

RELATED_MESSAGES = ("Spelling matters", "Particularly for names")


@dataclass(frozen=True)
class Finding:
    """A single diagnostic produced by the scanner, in character offsets."""

    start: int
    end: int
    message: str
    severity: DiagnosticSeverity = DiagnosticSeverity.Warning
    source: str = DIAGNOSTIC_SOURCE
    related: tuple[str, ...] = ()


def scan(
    text: str,
    settings: Settings,
    related_information: bool = False,
) -> list[Finding]:
    """
    Scan ``text`` for all-uppercase words.

    Matches are reported left to right and never overlap. Scanning stops as
    soon as ``settings.max_number_of_problems`` findings were produced.

    Args:
        text: Full document text
        settings: Effective settings of the document
        related_information: Attach the advisory related messages

    Returns:
        Ordered list of findings
    """
    findings: list[Finding] = []
    limit = settings.max_number_of_problems
    if limit <= 0:
        return findings

    related = RELATED_MESSAGES if related_information else ()

    for match in UPPERCASE_RUN.finditer(text):
        findings.append(
            Finding(
                start=match.start(),
                end=match.end(),
                message=f"{match.group()} is all uppercase.",
                related=related,
            )
        )
        if len(findings) >= limit:
            break

    return findings
