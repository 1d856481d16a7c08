"""
Relationship Analysis Templates

Prompts for the two phases of a screenshot analysis:

1. Group analysis - one call per group of screenshots, each answered
   using the fixed section template below
2. Merge - one call that folds every group analysis into a single
   document with the same sections

The section template is policy carried by the prompts. Nothing downstream
rejects a response that drifts from it; the report parser just does its
best with whatever comes back.
"""

from enum import Enum


class AnalysisSection(Enum):
    """Sections of the relationship analysis template, in display order."""
    COMMUNICATION_PATTERNS = "Communication Patterns"
    EMOTIONAL_UNDERTONES = "Emotional Undertones"
    RED_FLAGS = "Potential Red Flags"
    GREEN_FLAGS = "Potential Green Flags"
    OVERALL_DYNAMICS = "Overall Dynamics"
    OBJECTIVE_JUDGMENT = "Objective Judgment"
    TLDR = "TL;DR"


SECTION_TITLES: list[str] = [section.value for section in AnalysisSection]

REPORT_HEADING = "### Relationship Analysis"


ANALYSIS_SYSTEM_PROMPT = '''You are an expert relationship analyst specializing in digital communication patterns.
Your task is to:
1. Analyze the conversation objectively
2. Determine who was more in the wrong
3. Provide constructive feedback for both parties
4. Be direct but fair in your assessment
5. Support your judgment with specific examples from the conversation

You MUST follow the exact formatting provided in the prompt.
Your analysis should be detailed, insightful, and maintain consistent markdown formatting.
Be particularly clear in the Objective Judgment section about who was more at fault and why.'''


ANALYSIS_TEMPLATE = '''Please analyze these conversation screenshots and provide a detailed relationship analysis, including an objective judgment on who was more in the wrong.
Format your response EXACTLY as follows:

### Relationship Analysis

Communication Patterns:
- [Analyze directness, tone, and communication style of each person]
- [Note any patterns in how they express themselves]
- [Identify specific communication behaviors with examples]

Emotional Undertones:
- [Identify emotional states and reactions]
- [Note any defensive or dismissive behavior]
- [Analyze emotional intelligence and awareness]

Potential Red Flags:
- [List any concerning patterns or behaviors]
- [Identify boundary issues or mismatches]
- [Note communication or emotional misalignments]

Potential Green Flags:
- [List positive aspects of the interaction]
- [Note healthy communication patterns]
- [Identify growth potential]

Overall Dynamics:
- [Provide overall assessment of relationship potential]
- [Suggest areas for improvement or growth]
- [Give balanced perspective on compatibility]

Objective Judgment:
- Who was more in the wrong: [State which person was more at fault and why]
- What could have been done better: [Provide specific suggestions for both parties]
- Key misunderstandings: [Identify critical points where communication broke down]

TL;DR:
[Write a single, clear sentence that captures the essence of the situation and indicates who was more in the wrong.]'''


MERGE_SYSTEM_PROMPT = '''Combine multiple relationship analyses into a single coherent summary.
You MUST maintain the exact format:

### Relationship Analysis

Communication Patterns:
- [points]

Emotional Undertones:
- [points]

Potential Red Flags:
- [points]

Potential Green Flags:
- [points]

Overall Dynamics:
- [points]

Objective Judgment:
- Who was more in the wrong: [person and reason]
- What could have been done better: [suggestions for both parties]
- Key misunderstandings: [points]

TL;DR:
[brief summary]

Ensure consistent formatting and maintain the style of the original analyses.
The analyses are given in the order the screenshots were taken; treat later ones as later in the conversation.'''


MERGE_INSTRUCTIONS = (
    "Combine these analyses into one coherent summary, "
    "maintaining the exact formatting structure shown above:"
)


def format_merge_prompt(partials: list[str]) -> str:
    """Build the user message for the merge call from ordered group analyses."""
    return f"{MERGE_INSTRUCTIONS}\n\n" + "\n\n".join(partials)
