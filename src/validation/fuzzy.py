"""Fuzzy ranking of node-type names for "did you mean" suggestions."""

from __future__ import annotations

import re

_WORD_SPLIT_RE = re.compile(r"[^a-z0-9]+")

MIN_FRAGMENT_LENGTH = 3
MAX_EDIT_DISTANCE = 3


def levenshtein(a: str, b: str) -> int:
    """Edit distance between two strings."""
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + (ca != cb),
                )
            )
        previous = current
    return previous[-1]


def _trailing_segment(name: str) -> str:
    return name.rsplit(".", 1)[-1].lower()


def similarity_score(target: str, candidate: str) -> int:
    """Score how likely ``candidate`` is the type ``target`` meant.

    Scores compare the trailing segment after the last ``.``, lower-cased:

    - +100 exact match
    - +50 candidate segment contains the target segment
    - +20 per word fragment pair (target fragment >= 3 chars) where one
      contains the other
    - +30 full candidate name contains the full target name
    - +(10 - d) * 10 when the edit distance d is at most 3
    """
    target_full = target.lower()
    candidate_full = candidate.lower()
    target_name = _trailing_segment(target) or target_full
    candidate_name = _trailing_segment(candidate) or candidate_full

    score = 0
    if candidate_name == target_name:
        score += 100
    if target_name in candidate_name:
        score += 50

    candidate_words = [w for w in _WORD_SPLIT_RE.split(candidate_name) if w]
    for word in _WORD_SPLIT_RE.split(target_name):
        if len(word) < MIN_FRAGMENT_LENGTH:
            continue
        for other in candidate_words:
            if word in other or other in word:
                score += 20

    if target_full in candidate_full:
        score += 30

    distance = levenshtein(target_name, candidate_name)
    if distance <= MAX_EDIT_DISTANCE:
        score += (10 - distance) * 10
    return score


def rank_alternatives(target: str, candidates: list[str], limit: int = 5) -> list[str]:
    """Return up to ``limit`` candidates by descending score.

    Only positive scores are kept. The sort is stable, so ties keep the
    order of ``candidates``.
    """
    scored = [(similarity_score(target, c), c) for c in candidates]
    ranked = sorted((item for item in scored if item[0] > 0), key=lambda item: -item[0])
    return [c for _, c in ranked[:limit]]
