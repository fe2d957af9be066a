"""Personalization helpers for the survey skill.

Resolves the consented given name of the person the platform identified
for a request, so handlers can greet people by name or ask for consent.
"""
from __future__ import annotations

from skill_core.personalization import (
    PERSON_PERMISSION_DENIED,
    UNKNOWN_ERROR,
    get_person,
    get_personalized_prompt,
    resolve_personalized_prompt,
)

__all__ = [
    "PERSON_PERMISSION_DENIED",
    "UNKNOWN_ERROR",
    "get_person",
    "get_personalized_prompt",
    "resolve_personalized_prompt",
]
