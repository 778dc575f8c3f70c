"""Maps a flow reading to a rowing advisory tier and its spoken message."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from zoneinfo import ZoneInfo

from models.records import AdvisoryTier, Reading

LOCAL_TZ = ZoneInfo("Europe/London")

NORMAL_MAX = 50.0
HIGH_FLOW_MAX = 75.0
VERY_HIGH_FLOW_MAX = 100.0

SAFETY_DISCLAIMER = (
    "There are factors other than flow rate that affect water safety. "
    "Please use your best judgement and consult with your coach and squad "
    "vice captain before going on the water."
)

_RESTRICTIONS = {
    AdvisoryTier.normal: "there are no restrictions today based on flow rate",
    AdvisoryTier.high_flow: (
        "there are High Flow restrictions today. No novice coxes or steerpersons"
    ),
    AdvisoryTier.very_high_flow: (
        "there are Very High Flow restrictions today. No singles, doubles, or pairs today"
    ),
    AdvisoryTier.no_rowing: "there is no rowing today, it's too dangerous",
}


@dataclass(frozen=True)
class Advisory:
    """Classification outcome ready to be spoken."""

    tier: AdvisoryTier
    message: str
    reading: Reading


def tier_for(value: float) -> AdvisoryTier:
    """Return the tier whose upper-inclusive interval contains ``value``."""
    if value <= NORMAL_MAX:
        return AdvisoryTier.normal
    if value <= HIGH_FLOW_MAX:
        return AdvisoryTier.high_flow
    if value <= VERY_HIGH_FLOW_MAX:
        return AdvisoryTier.very_high_flow
    return AdvisoryTier.no_rowing


def format_flow(value: float) -> str:
    """Render a flow value the way it was reported: ``88`` not ``88.0``."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def format_when(timestamp: datetime) -> str:
    """UK long form in London time, e.g. ``Monday, 1 January 2024 at 10:00``."""
    local = timestamp.astimezone(LOCAL_TZ)
    return f"{local:%A}, {local.day} {local:%B %Y} at {local:%H:%M}"


def classify(reading: Reading) -> Advisory:
    tier = tier_for(reading.value)
    message = (
        f"As of {format_when(reading.timestamp)}, the current flow rate at "
        f"{reading.label} is {format_flow(reading.value)} cubic meters per second, "
        f"{_RESTRICTIONS[tier]}. {SAFETY_DISCLAIMER}"
    )
    return Advisory(tier=tier, message=message, reading=reading)
