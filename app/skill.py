"""Voice skill request dispatch.

Incoming envelopes are offered to each handler in ``HANDLERS`` order; the
first one whose ``can_handle`` accepts the request builds the response. Any
exception escaping a handler is turned into a generic spoken apology.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol, Sequence

from app.schemas import (
    OutputSpeech,
    Reprompt,
    SkillRequestEnvelope,
    SkillResponseBody,
    SkillResponseEnvelope,
)
from services.advisor import FALLBACK_SPEECH, RowingAdvisor
from services.upstream import FetchError

logger = logging.getLogger(__name__)

ROWING_INTENT = "RowingConditionsIntent"
HELP_INTENT = "AMAZON.HelpIntent"
STOP_INTENTS = frozenset({"AMAZON.CancelIntent", "AMAZON.StopIntent"})

FOLLOW_UP_PROMPT = "Is there anything else you'd like to know about rowing conditions?"
HELP_SPEECH = (
    "I can tell you if it's safe to row today at Reading Rowing Club based on "
    'river flow conditions. Just ask "can I row today?" and I\'ll check the '
    "latest flow data for Reading UK from the UK Environment Agency."
)
GOODBYE_SPEECH = "Stay safe on the water!"
ERROR_SPEECH = "Sorry, I had trouble doing what you asked. Please try again."


class ResponseBuilder:
    def __init__(self) -> None:
        self._body = SkillResponseBody()

    def speak(self, text: str) -> "ResponseBuilder":
        self._body.output_speech = OutputSpeech(text=text)
        return self

    def reprompt(self, text: str) -> "ResponseBuilder":
        self._body.reprompt = Reprompt(output_speech=OutputSpeech(text=text))
        self._body.should_end_session = False
        return self

    def end_session(self, value: bool = True) -> "ResponseBuilder":
        self._body.should_end_session = value
        return self

    def build(self) -> SkillResponseEnvelope:
        return SkillResponseEnvelope(response=self._body)


def _intent_name(envelope: SkillRequestEnvelope) -> Optional[str]:
    intent = envelope.request.intent
    return intent.name if intent is not None else None


def _is_intent(envelope: SkillRequestEnvelope, *names: str) -> bool:
    return envelope.request.type == "IntentRequest" and _intent_name(envelope) in names


class RequestHandler(Protocol):
    def can_handle(self, envelope: SkillRequestEnvelope) -> bool: ...

    async def handle(
        self, envelope: SkillRequestEnvelope, advisor: RowingAdvisor
    ) -> SkillResponseEnvelope: ...


class RowingConditionsHandler:
    """Launch and the rowing intent both answer with the current advisory."""

    def can_handle(self, envelope: SkillRequestEnvelope) -> bool:
        return envelope.request.type == "LaunchRequest" or _is_intent(envelope, ROWING_INTENT)

    async def handle(
        self, envelope: SkillRequestEnvelope, advisor: RowingAdvisor
    ) -> SkillResponseEnvelope:
        try:
            advisory = await advisor.current_advisory()
        except FetchError as exc:
            logger.warning(
                "Could not obtain a flow reading",
                extra={"reason": exc.cause, "request_type": envelope.request.type},
            )
            speech = FALLBACK_SPEECH
        else:
            speech = advisory.message
        return ResponseBuilder().speak(speech).reprompt(FOLLOW_UP_PROMPT).build()


class HelpHandler:
    def can_handle(self, envelope: SkillRequestEnvelope) -> bool:
        return _is_intent(envelope, HELP_INTENT)

    async def handle(
        self, envelope: SkillRequestEnvelope, advisor: RowingAdvisor
    ) -> SkillResponseEnvelope:
        return ResponseBuilder().speak(HELP_SPEECH).reprompt(HELP_SPEECH).build()


class CancelAndStopHandler:
    def can_handle(self, envelope: SkillRequestEnvelope) -> bool:
        return _is_intent(envelope, *STOP_INTENTS)

    async def handle(
        self, envelope: SkillRequestEnvelope, advisor: RowingAdvisor
    ) -> SkillResponseEnvelope:
        return ResponseBuilder().speak(GOODBYE_SPEECH).end_session().build()


class SessionEndedHandler:
    def can_handle(self, envelope: SkillRequestEnvelope) -> bool:
        return envelope.request.type == "SessionEndedRequest"

    async def handle(
        self, envelope: SkillRequestEnvelope, advisor: RowingAdvisor
    ) -> SkillResponseEnvelope:
        logger.info("Session ended", extra={"reason": envelope.request.reason})
        return ResponseBuilder().build()


class IntentReflectorHandler:
    """Echoes back intents no other handler claims."""

    def can_handle(self, envelope: SkillRequestEnvelope) -> bool:
        return envelope.request.type == "IntentRequest"

    async def handle(
        self, envelope: SkillRequestEnvelope, advisor: RowingAdvisor
    ) -> SkillResponseEnvelope:
        speech = f"You just triggered {_intent_name(envelope)}"
        return ResponseBuilder().speak(speech).end_session(False).build()


HANDLERS: Sequence[RequestHandler] = (
    RowingConditionsHandler(),
    HelpHandler(),
    CancelAndStopHandler(),
    SessionEndedHandler(),
    IntentReflectorHandler(),
)


def error_response() -> SkillResponseEnvelope:
    return ResponseBuilder().speak(ERROR_SPEECH).reprompt(ERROR_SPEECH).build()


async def dispatch(
    envelope: SkillRequestEnvelope,
    advisor: RowingAdvisor,
    handlers: Sequence[RequestHandler] = HANDLERS,
) -> SkillResponseEnvelope:
    request_type = envelope.request.type
    intent = _intent_name(envelope)
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "Skill request received: %s",
            envelope.model_dump_json(by_alias=True),
            extra={"request_type": request_type, "intent": intent},
        )

    response: SkillResponseEnvelope
    for handler in handlers:
        if not handler.can_handle(envelope):
            continue
        try:
            response = await handler.handle(envelope, advisor)
        except Exception:
            logger.exception(
                "Skill handler failed",
                extra={"request_type": request_type, "intent": intent},
            )
            response = error_response()
        break
    else:
        logger.warning(
            "No handler for skill request",
            extra={"request_type": request_type, "intent": intent},
        )
        response = error_response()

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "Skill response: %s",
            response.model_dump_json(by_alias=True, exclude_none=True),
        )
    return response
