"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from models.records import AdvisoryTier
from services.classifier import Advisory


class AdvisoryResponse(BaseModel):
    """Current rowing advisory as returned by ``GET /advisory``."""

    tier: AdvisoryTier
    message: str
    label: str = Field(..., description="Gauging station name.")
    timestamp: datetime = Field(..., description="When the flow was measured (UTC).")
    value: float = Field(..., ge=0, description="Flow rate in cubic meters per second.")

    @classmethod
    def from_advisory(cls, advisory: Advisory) -> "AdvisoryResponse":
        reading = advisory.reading
        return cls(
            tier=advisory.tier,
            message=advisory.message,
            label=reading.label,
            timestamp=reading.timestamp,
            value=reading.value,
        )


# Voice platform envelopes. Only the fields the dispatcher reads are declared;
# everything else the platform sends is ignored.


class _Envelope(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class Intent(_Envelope):
    name: str


class SkillRequestBody(_Envelope):
    type: str
    request_id: Optional[str] = Field(default=None, alias="requestId")
    intent: Optional[Intent] = None
    reason: Optional[str] = None


class SkillRequestEnvelope(_Envelope):
    version: str = "1.0"
    request: SkillRequestBody


class OutputSpeech(_Envelope):
    type: str = "PlainText"
    text: str


class Reprompt(_Envelope):
    output_speech: OutputSpeech = Field(..., alias="outputSpeech")


class SkillResponseBody(_Envelope):
    output_speech: Optional[OutputSpeech] = Field(default=None, alias="outputSpeech")
    reprompt: Optional[Reprompt] = None
    should_end_session: Optional[bool] = Field(default=None, alias="shouldEndSession")


class SkillResponseEnvelope(_Envelope):
    version: str = "1.0"
    response: SkillResponseBody = Field(default_factory=SkillResponseBody)
