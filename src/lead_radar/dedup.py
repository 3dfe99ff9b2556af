# dedup.py
"""Cross-platform lead deduplication."""

from typing import Dict, Iterable, List

from .models import CandidateLead


def dedupe(leads: Iterable[CandidateLead]) -> List[CandidateLead]:
    """Collapse leads that share a dedup key.

    The key is the email when present, otherwise name and company. On a
    collision the higher-scored lead wins and ties keep the first seen.
    Output follows the first-seen order of each key; callers sort afterward.
    """
    best: Dict[str, CandidateLead] = {}
    for lead in leads:
        key = lead.dedup_key
        current = best.get(key)
        if current is None or lead.score > current.score:
            best[key] = lead
    return list(best.values())
