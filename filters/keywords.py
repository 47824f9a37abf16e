"""
Keyword rules. Plain case-sensitive substring matching, no regex.

- Block keywords decide eligibility: any hit on the push body drops the item.
- Active keywords only raise the push level; they never drop anything.
"""

from models import CandidateItem

CRITICAL = "critical"


def is_blocked(text: str, block_keywords: list[str]) -> bool:
    return any(keyword and keyword in text for keyword in block_keywords)


def filter_blocked(items: list[CandidateItem], block_keywords: list[str]) -> list[CandidateItem]:
    """Drop items whose push body contains a block keyword. Order is kept."""
    if not block_keywords:
        return list(items)
    return [item for item in items if not is_blocked(item.push_body, block_keywords)]


def select_level(text: str | None, active_keywords: list[str], default: str = "passive") -> str:
    if text and any(keyword and keyword in text for keyword in active_keywords):
        return CRITICAL
    return default
