"""
Report parsing

Splits a merged analysis into the sections of the relationship template
so clients can render it without re-parsing markdown.

Recognized shapes:
- "### Relationship Analysis"  -> report title (#-### before the first section)
- "#### Red Flags" / "**Red Flags:**" / "Red Flags:" -> new section
- "- point" / "* point"        -> bullet in the current section
- anything else                -> paragraph in the current section

A "Label:" line only opens a section when the label is one of the
template's section titles, so prose like "Note: ..." stays a paragraph.
"""

import re
from dataclasses import dataclass, field, asdict
from typing import Optional

from .prompts import SECTION_TITLES

_KNOWN_TITLES = {title.lower(): title for title in SECTION_TITLES}
_TLDR_KEYS = {"tl;dr", "tldr", "tl dr"}

_HEADING_RE = re.compile(r'^(#{1,6})\s*(.+?)\s*#*$')
_LABEL_RE = re.compile(r'^([A-Za-z][A-Za-z ;/&\'-]{0,60}?)\s*:\s*(.*)$')
_BULLET_RE = re.compile(r'^[-*•]\s+(.*)$')


@dataclass
class ReportSection:
    title: str
    bullets: list[str] = field(default_factory=list)
    paragraphs: list[str] = field(default_factory=list)


@dataclass
class AnalysisReport:
    """Structured form of a relationship analysis."""
    title: Optional[str] = None
    sections: list[ReportSection] = field(default_factory=list)
    tldr: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)

    def section(self, title: str) -> Optional[ReportSection]:
        for section in self.sections:
            if section.title.lower() == title.lower():
                return section
        return None


def strip_emphasis(text: str) -> str:
    """Remove markdown bold/italic markers."""
    return re.sub(r'\*{1,3}|_{2,3}', '', text).strip()


def _canonical_title(label: str) -> Optional[str]:
    key = strip_emphasis(label).rstrip(':').strip().lower()
    if key in _TLDR_KEYS:
        return "TL;DR"
    return _KNOWN_TITLES.get(key)


def parse_analysis(text: str) -> AnalysisReport:
    """
    Parse a merged analysis into an AnalysisReport.

    Args:
        text: Model output following the relationship template

    Returns:
        AnalysisReport; the TL;DR section is exposed as ``tldr`` rather
        than kept in ``sections``
    """
    report = AnalysisReport()
    current: Optional[ReportSection] = None
    tldr_parts: list[str] = []

    def open_section(title: str) -> ReportSection:
        section = ReportSection(title=title)
        report.sections.append(section)
        return section

    def add_text(line: str) -> None:
        nonlocal current
        if current is None:
            current = open_section("Summary")
        bullet = _BULLET_RE.match(line)
        if bullet:
            current.bullets.append(strip_emphasis(bullet.group(1)))
        else:
            current.paragraphs.append(strip_emphasis(line))

    for raw_line in (text or "").splitlines():
        line = raw_line.strip()
        if not line:
            continue

        heading = _HEADING_RE.match(line)
        if heading:
            title = strip_emphasis(heading.group(2)).rstrip(':').strip()
            canonical = _canonical_title(title)
            top_level = len(heading.group(1)) <= 3
            if canonical is None and top_level and report.title is None and not report.sections:
                report.title = title
                continue
            current = open_section(canonical or title)
            continue

        if not _BULLET_RE.match(line):
            label = _LABEL_RE.match(strip_emphasis(line))
            if label:
                canonical = _canonical_title(label.group(1))
                if canonical:
                    current = open_section(canonical)
                    inline = label.group(2).strip()
                    if inline:
                        add_text(inline)
                    continue

        add_text(line)

    for section in list(report.sections):
        if section.title == "TL;DR":
            tldr_parts.extend(section.paragraphs)
            tldr_parts.extend(section.bullets)
            report.sections.remove(section)

    if tldr_parts:
        report.tldr = " ".join(tldr_parts)

    return report
