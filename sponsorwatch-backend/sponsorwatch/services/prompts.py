"""
Groq LLM Prompt Templates
Sponsor extraction from video descriptions and comment tagging.
"""
from __future__ import annotations

# =============================================================================
# SPONSOR PROMPT
# One sponsor (or none) per video, keyed by the channel's sponsor link
# =============================================================================

SPONSOR_SYSTEM = """You read YouTube video descriptions and identify the paid sponsor of the video.

STRICT RULES:
- Output MUST be valid JSON only. No markdown, no explanation, no extra text.
- Report at most ONE sponsor: the brand that paid for this video.
- Affiliate links, merch, socials and the creator's own products are NOT sponsors.
- The sponsor key is the sponsor's tracking link exactly as written in the description.
- When unsure, report no sponsor.

CHANNEL RULES:
{sponsor_prompt}"""

SPONSOR_USER_TEMPLATE = """Find the sponsor of this video.

OUTPUT FORMAT (STRICT — NO EXTRA KEYS):
{{
  "hasSponsor": boolean,
  "sponsorName": string,
  "sponsorKey": string
}}

VIDEO TITLE:
{title}

VIDEO DESCRIPTION:
\"\"\"{description}\"\"\""""


def format_sponsor_prompt(title: str, description: str, sponsor_prompt: str) -> tuple[str, str]:
    system = SPONSOR_SYSTEM.format(sponsor_prompt=sponsor_prompt.strip())
    user = SPONSOR_USER_TEMPLATE.format(
        title=title.strip(),
        description=description[:8000],
    )
    return system, user


# =============================================================================
# COMMENT PROMPT
# Four independent boolean tags per top-level comment
# =============================================================================

COMMENT_SYSTEM = """You label YouTube comments for the creator's team.

Answer four independent yes/no questions about the comment:
- isEditingMistake: the comment points out an editing mistake (wrong cut, typo on screen, audio glitch, wrong graphic).
- isSponsorMention: the comment talks about the video's sponsor or the sponsor segment.
- isQuestion: the comment asks the creator a genuine question.
- isPositiveComment: the overall tone toward the video or creator is positive.

Output MUST be valid JSON only. No markdown, no explanation."""

COMMENT_USER_TEMPLATE = """VIDEO TITLE:
{title}

VIDEO DESCRIPTION:
\"\"\"{description}\"\"\"

COMMENT BY {author}:
\"\"\"{text}\"\"\"

OUTPUT FORMAT (STRICT — NO EXTRA KEYS):
{{
  "isEditingMistake": boolean,
  "isSponsorMention": boolean,
  "isQuestion": boolean,
  "isPositiveComment": boolean
}}"""


def format_comment_prompt(title: str, description: str, author: str, text: str) -> tuple[str, str]:
    # Description only gives context here; keep it short
    user = COMMENT_USER_TEMPLATE.format(
        title=title.strip(),
        description=description[:1500],
        author=author.strip() or "unknown",
        text=text[:2000],
    )
    return COMMENT_SYSTEM, user
