"""Tests for resolving personalized prompts from the profile service."""
from __future__ import annotations

import asyncio
import inspect
from unittest.mock import MagicMock

import pytest

from skill_core.personalization import (
    PERSON_PERMISSION_DENIED,
    UNKNOWN_ERROR,
    NameDenied,
    NameFailed,
    NameResolved,
    build_error,
    fetch_given_name,
    get_person,
    get_person_id,
    get_personalized_prompt,
    handle_fallback,
    name_tag,
    resolve_name,
    resolve_personalized_prompt,
)
from skill_core.schema import ErrorKind, Person, PersonalizationResult, RequestContext, SystemContext
from skill_core.ups_client import ServiceError

PERSON_ID = "amzn1.ask.person.X"


class _FakeUpsClient:
    def __init__(self, *, name=None, error: Exception | None = None):
        self._name = name
        self._error = error
        self.calls = 0

    async def get_persons_profile_given_name(self):
        self.calls += 1
        if self._error is not None:
            raise self._error
        return self._name


class _Rejection(Exception):
    """Error shaped like the platform SDK's service error (statusCode/statusMessage)."""

    def __init__(self, status_code: int, status_message: str):
        super().__init__(status_message)
        self.status_code = status_code
        self.status_message = status_message


def _context(client=None, *, person_id: str | None = PERSON_ID) -> RequestContext:
    factory = MagicMock()
    factory.get_ups_service_client.return_value = client
    person = Person(person_id=person_id) if person_id else None
    return RequestContext(system=SystemContext(person=person), service_client_factory=factory)


class TestAccessors:
    def test_get_person_returns_attached_person(self):
        ctx = _context()
        assert get_person(ctx) == Person(person_id=PERSON_ID)
        assert get_person_id(ctx) == PERSON_ID

    def test_get_person_absent(self):
        assert get_person(_context(person_id=None)) is None

    def test_get_person_id_without_person_raises(self):
        with pytest.raises(AttributeError):
            get_person_id(_context(person_id=None))

    def test_build_error(self):
        err = build_error(PERSON_PERMISSION_DENIED, "nope")
        assert err.status_code is ErrorKind.PERSON_PERMISSION_DENIED
        assert err.to_dict() == {"statusCode": "PERSON_PERMISSION_DENIED", "statusMessage": "nope"}

    def test_build_error_accepts_plain_string_code(self):
        assert build_error("UNKNOWN_ERROR", "x").status_code is UNKNOWN_ERROR

    def test_exported_codes_compare_as_strings(self):
        assert PERSON_PERMISSION_DENIED == "PERSON_PERMISSION_DENIED"
        assert UNKNOWN_ERROR == "UNKNOWN_ERROR"

    def test_name_tag(self):
        assert name_tag(PERSON_ID) == f'<alexa:name type="first" personId="{PERSON_ID}"/>'


class TestGetPersonalizedPrompt:
    def test_no_person_returns_empty_result_synchronously(self):
        """The fallback is invoked, not returned as a callable, and no client is built."""
        ctx = _context(person_id=None)
        result = get_personalized_prompt(ctx)

        assert not inspect.isawaitable(result)
        assert not callable(result)
        assert result == handle_fallback()
        assert result.to_dict() == {}
        ctx.service_client_factory.get_ups_service_client.assert_not_called()

    def test_person_returns_pending_resolution(self):
        client = _FakeUpsClient(name="Alex")
        pending = get_personalized_prompt(_context(client))

        assert inspect.isawaitable(pending)
        assert client.calls == 0
        result = asyncio.run(pending)
        assert result.to_dict() == {"resolvedName": "Alex"}
        assert client.calls == 1

    def test_resolve_personalized_prompt_handles_both_paths(self):
        assert asyncio.run(resolve_personalized_prompt(_context(person_id=None))).to_dict() == {}
        result = asyncio.run(resolve_personalized_prompt(_context(_FakeUpsClient(name="Sam"))))
        assert result.to_dict() == {"resolvedName": "Sam"}


class TestResolveName:
    def test_resolved_name(self):
        result = asyncio.run(resolve_name(_context(_FakeUpsClient(name="Alex"))))
        assert result == PersonalizationResult(resolved_name="Alex")
        assert result.to_dict() == {"resolvedName": "Alex"}

    def test_null_name_is_empty_result(self):
        result = asyncio.run(resolve_name(_context(_FakeUpsClient(name=None))))
        assert result.is_empty
        assert result.to_dict() == {}

    def test_empty_string_name_is_kept(self):
        result = asyncio.run(resolve_name(_context(_FakeUpsClient(name=""))))
        assert result.to_dict() == {"resolvedName": ""}

    def test_forbidden_maps_to_permission_denied(self):
        client = _FakeUpsClient(error=_Rejection(403, "not consented"))
        result = asyncio.run(resolve_name(_context(client)))
        assert result.to_dict() == {
            "error": {"statusCode": "PERSON_PERMISSION_DENIED", "statusMessage": "not consented"}
        }

    def test_server_error_maps_to_unknown(self):
        client = _FakeUpsClient(error=_Rejection(500, "server error"))
        result = asyncio.run(resolve_name(_context(client)))
        assert result.to_dict() == {"error": {"statusCode": "UNKNOWN_ERROR", "statusMessage": "server error"}}

    def test_service_error_from_client(self):
        client = _FakeUpsClient(error=ServiceError(403, "Access denied"))
        result = asyncio.run(resolve_name(_context(client)))
        assert result.error.status_code is PERSON_PERMISSION_DENIED
        assert result.error.status_message == "Access denied"

    def test_unstructured_exception_maps_to_unknown(self):
        client = _FakeUpsClient(error=RuntimeError("connection reset"))
        result = asyncio.run(resolve_name(_context(client)))
        assert result.error.status_code is UNKNOWN_ERROR
        assert result.error.status_message == "connection reset"

    def test_single_attempt_no_retry(self):
        client = _FakeUpsClient(error=_Rejection(503, "unavailable"))
        asyncio.run(resolve_name(_context(client)))
        assert client.calls == 1

    @pytest.mark.parametrize(
        "client",
        [
            _FakeUpsClient(name="Alex"),
            _FakeUpsClient(name=None),
            _FakeUpsClient(error=_Rejection(403, "denied")),
            _FakeUpsClient(error=_Rejection(404, "missing")),
        ],
    )
    def test_result_never_has_both_fields(self, client):
        result = asyncio.run(resolve_name(_context(client)))
        assert len(result.to_dict()) <= 1
        assert result.resolved_name is None or result.error is None


class TestFetchGivenName:
    def test_outcomes(self):
        assert asyncio.run(fetch_given_name(_FakeUpsClient(name="A"))) == NameResolved("A")
        assert asyncio.run(fetch_given_name(_FakeUpsClient(error=_Rejection(403, "d")))) == NameDenied("d")
        assert asyncio.run(fetch_given_name(_FakeUpsClient(error=_Rejection(502, "bad")))) == NameFailed(
            "bad", status_code=502
        )
