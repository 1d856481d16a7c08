"""
Prompt templates for relationship analysis.
"""

from .relationship_templates import (
    AnalysisSection,
    SECTION_TITLES,
    REPORT_HEADING,
    ANALYSIS_SYSTEM_PROMPT,
    ANALYSIS_TEMPLATE,
    MERGE_SYSTEM_PROMPT,
    MERGE_INSTRUCTIONS,
    format_merge_prompt,
)

__all__ = [
    "AnalysisSection",
    "SECTION_TITLES",
    "REPORT_HEADING",
    "ANALYSIS_SYSTEM_PROMPT",
    "ANALYSIS_TEMPLATE",
    "MERGE_SYSTEM_PROMPT",
    "MERGE_INSTRUCTIONS",
    "format_merge_prompt",
]
