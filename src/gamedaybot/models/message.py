"""Structured content of a play notification.

A sent message is kept as fields rather than text so the backfill poller can
fill one metric without touching the others. Text is produced only when the
message is sent or edited.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

PENDING = "Pending..."
NOT_AVAILABLE = "Not Available."
UNAVAILABLE = "Unavailable"

MetricField = Literal["xba", "hr_park"]
METRIC_FIELDS: tuple[MetricField, ...] = ("xba", "hr_park")


def render_content(
    body: str,
    xba: str | None = None,
    hr_park: str | None = None,
    zone_note: str | None = None,
) -> str:
    """Join the narrative body with whichever metric lines are present."""
    lines = [body]
    if xba is not None:
        lines.append(f"xBA: {xba}")
    if hr_park is not None:
        lines.append(f"HR/Park: {hr_park}")
    if zone_note:
        lines.append(zone_note)
    return "\n".join(lines)


class PlayMessage(BaseModel):
    """One channel's copy of a play report."""

    title: str = ""
    color: str = "#000000"
    body: str
    xba: str | None = None
    hr_park: str | None = None
    zone_note: str | None = None

    def render(self) -> str:
        return render_content(self.body, self.xba, self.hr_park, self.zone_note)

    def pending_fields(self) -> list[MetricField]:
        """Metric fields still showing the placeholder."""
        return [name for name in METRIC_FIELDS if getattr(self, name) == PENDING]

    def is_pending(self, name: MetricField) -> bool:
        return getattr(self, name) == PENDING

    def fill(self, name: MetricField, value: str) -> bool:
        """Replace a pending placeholder. Returns False if the field was not pending."""
        if not self.is_pending(name):
            return False
        setattr(self, name, value)
        return True

    def expire_pending(self) -> bool:
        """Turn every remaining placeholder into NOT_AVAILABLE. Returns True if anything changed."""
        changed = False
        for name in self.pending_fields():
            setattr(self, name, NOT_AVAILABLE)
            changed = True
        return changed
