"""Personalized prompts for the person the platform identified.

If the request carries a person, the consented given name is fetched from
the profile service. Callers get back one of::

    {"resolvedName": "<name>"}
    {"error": {"statusCode": "PERSON_PERMISSION_DENIED" | "UNKNOWN_ERROR", "statusMessage": "..."}}
    {}

PERSON_PERMISSION_DENIED means the person has not consented to share their
name; the caller should ask for voice consent.
"""
from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Optional, Union

from skill_core.schema import (
    ErrorKind,
    Person,
    PersonalizationError,
    PersonalizationResult,
    RequestContext,
)

logger = logging.getLogger(__name__)

# Status codes callers compare against.
PERSON_PERMISSION_DENIED = ErrorKind.PERSON_PERMISSION_DENIED
UNKNOWN_ERROR = ErrorKind.UNKNOWN_ERROR

FORBIDDEN = 403


# ---------------------------------------------------------------------------
# Outcome of the profile service call


@dataclass(frozen=True)
class NameResolved:
    name: Optional[str]


@dataclass(frozen=True)
class NameDenied:
    message: str


@dataclass(frozen=True)
class NameFailed:
    message: str
    status_code: Optional[int] = None


NameOutcome = Union[NameResolved, NameDenied, NameFailed]


def _failure_message(exc: BaseException) -> str:
    for attr in ("status_message", "message"):
        value = getattr(exc, attr, None)
        if value:
            return str(value)
    return str(exc)


async def fetch_given_name(client: Any) -> NameOutcome:
    """Call the profile service once and classify the outcome. Never raises."""
    try:
        given_name = await client.get_persons_profile_given_name()
    except Exception as e:
        status = getattr(e, "status_code", None)
        if status == FORBIDDEN:
            return NameDenied(_failure_message(e))
        return NameFailed(_failure_message(e), status_code=status)
    return NameResolved(given_name)


# ---------------------------------------------------------------------------
# Request accessors


def get_person(context: RequestContext) -> Optional[Person]:
    """Person attached by the platform, or None if personalization is off or the speaker is unknown."""
    return context.system.person


def get_person_id(context: RequestContext) -> str:
    # Callers must check get_person() first; with no person this raises AttributeError.
    return get_person(context).person_id


def build_error(code: ErrorKind, message: str) -> PersonalizationError:
    return PersonalizationError(status_code=ErrorKind(code), status_message=message)


def handle_fallback() -> PersonalizationResult:
    return PersonalizationResult()


def name_tag(person_id: str, name_type: str = "first") -> str:
    """SSML tag the platform expands into the person's name at speech time."""
    return f'<alexa:name type="{name_type}" personId="{person_id}"/>'


# ---------------------------------------------------------------------------
# Resolution


def get_personalized_prompt(
    context: RequestContext,
) -> Union[PersonalizationResult, Awaitable[PersonalizationResult]]:
    """Return the pending name resolution if a person is present, else an empty result.

    The no-person branch is synchronous and never touches the profile client.
    Use resolve_personalized_prompt() to always get something awaitable.
    """
    if get_person(context):
        return resolve_name(context)
    logger.debug("No person on request; skipping personalization")
    return handle_fallback()


async def resolve_personalized_prompt(context: RequestContext) -> PersonalizationResult:
    result = get_personalized_prompt(context)
    if inspect.isawaitable(result):
        return await result
    return result


async def resolve_name(context: RequestContext) -> PersonalizationResult:
    """Fetch the consented given name for the person on the request.

    Remote failures are reported in the result, never raised.
    """
    client = context.service_client_factory.get_ups_service_client()
    person_id = get_person_id(context)
    logger.info("Received person_id=%s", person_id)

    outcome = await fetch_given_name(client)

    if isinstance(outcome, NameResolved):
        if outcome.name is None:
            logger.info("Profile service returned no given name for person_id=%s", person_id)
            return PersonalizationResult()
        logger.info("Given name retrieved for person_id=%s", person_id)
        return PersonalizationResult(resolved_name=outcome.name)

    if isinstance(outcome, NameDenied):
        # No consent at the person level; the caller should ask for voice consent.
        logger.info("Given name not consented for person_id=%s (403): %s", person_id, outcome.message)
        return PersonalizationResult(error=build_error(PERSON_PERMISSION_DENIED, outcome.message))

    if isinstance(outcome, NameFailed):
        logger.warning(
            "Failed to resolve given name person_id=%s status=%s error=%s",
            person_id,
            outcome.status_code,
            outcome.message,
        )
        return PersonalizationResult(error=build_error(UNKNOWN_ERROR, outcome.message))

    raise TypeError(f"Unhandled name outcome: {outcome!r}")
