from __future__ import annotations

import asyncio
import html
import logging
import os
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from skill_core.config import ConfigError, load_config
from skill_core.logging_utils import configure_logging
from skill_core.personalization import PERSON_PERMISSION_DENIED, resolve_personalized_prompt
from skill_core.schema import PersonalizationResult, RequestContext, parse_envelope
from skill_core.ups_client import ServiceClientFactory

logger = logging.getLogger(__name__)

GIVEN_NAME_SCOPE = "alexa::profile:given_name:read"


def _consent_directive() -> Dict[str, Any]:
    return {
        "type": "Connections.SendRequest",
        "name": "AskFor",
        "payload": {
            "@type": "AskForPermissionsConsentRequest",
            "@version": "2",
            "permissionScopes": [
                {"permissionScope": GIVEN_NAME_SCOPE, "consentLevel": "PERSON"},
            ],
        },
        "token": "",
    }


def _speech(text: str, *, end_session: bool = False, directives: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
    response: Dict[str, Any] = {
        "outputSpeech": {"type": "SSML", "ssml": f"<speak>{text}</speak>"},
    }
    if directives:
        response["directives"] = directives
    else:
        response["shouldEndSession"] = end_session
    return {"version": "1.0", "response": response}


def build_response(result: PersonalizationResult, skill_name: str) -> Dict[str, Any]:
    """Turn a personalization result into a launch greeting."""
    if result.resolved_name is not None:
        name = html.escape(result.resolved_name)
        return _speech(f"Welcome back to {skill_name}, {name}! Ready for today's survey?")

    if result.error is not None and result.error.status_code == PERSON_PERMISSION_DENIED:
        return _speech(
            f"Welcome to {skill_name}. I can greet you by name if you allow it.",
            directives=[_consent_directive()],
        )

    if result.error is not None:
        logger.warning("Personalization unavailable: %s", result.error.status_message)
    return _speech(f"Welcome to {skill_name}! Ready for today's survey?")


def handler(event, context):
    configure_logging(os.environ.get("VERBOSE", "0"))
    logger.info("Survey skill invocation")

    try:
        cfg = load_config()
        envelope = parse_envelope(event)
    except (ConfigError, ValidationError):
        logger.exception("Rejected skill invocation")
        return _speech("Sorry, something went wrong. Please try again later.", end_session=True)

    logger.info("Request type=%s request_id=%s", envelope.request.type, envelope.request.request_id)

    factory = ServiceClientFactory.from_system_context(envelope.context.system, cfg)
    ctx = RequestContext.from_envelope(envelope, service_client_factory=factory)

    result = asyncio.run(resolve_personalized_prompt(ctx))
    logger.info("Personalization outcome: %s", ",".join(result.to_dict()) or "empty")
    return build_response(result, cfg.skill_name)
