"""Request envelope models and the personalization result shape.

Inbound envelopes are validated once with pydantic; everything past the
boundary works with the typed models. Results are plain dataclasses that
serialize to the JSON shape handlers and clients consume.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class ErrorKind(str, Enum):
    PERSON_PERMISSION_DENIED = "PERSON_PERMISSION_DENIED"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


# ---------------------------------------------------------------------------
# Request envelope (only the fields this skill reads)


class _EnvelopeModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class Person(_EnvelopeModel):
    person_id: str = Field(alias="personId")


class SystemContext(_EnvelopeModel):
    person: Optional[Person] = None
    api_endpoint: Optional[str] = Field(default=None, alias="apiEndpoint")
    api_access_token: Optional[str] = Field(default=None, alias="apiAccessToken")


class Context(_EnvelopeModel):
    system: SystemContext = Field(default_factory=SystemContext, alias="System")


class Request(_EnvelopeModel):
    type: str = "LaunchRequest"
    request_id: Optional[str] = Field(default=None, alias="requestId")
    locale: Optional[str] = None


class RequestEnvelope(_EnvelopeModel):
    version: str = "1.0"
    context: Context = Field(default_factory=Context)
    request: Request = Field(default_factory=Request)


@dataclass
class RequestContext:
    """Per-request input to the personalization resolver.

    ``service_client_factory`` is supplied by the caller and must expose
    ``get_ups_service_client()``.
    """

    system: SystemContext
    service_client_factory: Any = None

    @classmethod
    def from_envelope(cls, envelope: RequestEnvelope, service_client_factory: Any = None) -> "RequestContext":
        return cls(system=envelope.context.system, service_client_factory=service_client_factory)


def parse_envelope(event: Dict[str, Any]) -> RequestEnvelope:
    """Validate a raw request envelope. Raises pydantic.ValidationError."""
    return RequestEnvelope.model_validate(event or {})


# ---------------------------------------------------------------------------
# Result shape


@dataclass(frozen=True)
class PersonalizationError:
    status_code: ErrorKind
    status_message: str

    def to_dict(self) -> Dict[str, Any]:
        return {"statusCode": self.status_code.value, "statusMessage": self.status_message}


@dataclass(frozen=True)
class PersonalizationResult:
    resolved_name: Optional[str] = None
    error: Optional[PersonalizationError] = None

    def __post_init__(self) -> None:
        if self.resolved_name is not None and self.error is not None:
            raise ValueError("PersonalizationResult carries either resolved_name or error, not both")

    @property
    def is_empty(self) -> bool:
        return self.resolved_name is None and self.error is None

    def to_dict(self) -> Dict[str, Any]:
        if self.resolved_name is not None:
            return {"resolvedName": self.resolved_name}
        if self.error is not None:
            return {"error": self.error.to_dict()}
        return {}
