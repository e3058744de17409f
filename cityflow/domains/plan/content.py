"""Generated itinerary content stored on a plan.

The AI itinerary lives in ``Plan.generated_content`` as JSON. This module
holds its typed view, the tolerant parser used when reading it back, and
the helpers that keep a day's timeline ordered.
"""

import enum
import logging
import re
from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

DEFAULT_SUMMARY = "Brak podsumowania."
DEFAULT_CURRENCY = "PLN"

_AM_PM_TIME = re.compile(r"(\d{1,2}):(\d{2})\s*(am|pm)", re.IGNORECASE)


class TimelineItemCategory(str, enum.Enum):
    """Category of a timeline item as chosen by the AI or the user."""

    HISTORY = "history"
    FOOD = "food"
    SPORT = "sport"
    NATURE = "nature"
    CULTURE = "culture"
    TRANSPORT = "transport"
    ACCOMMODATION = "accommodation"
    OTHER = "other"


class TimelineItemType(str, enum.Enum):
    """Coarse item type used by the timeline UI."""

    ACTIVITY = "activity"
    MEAL = "meal"
    TRANSPORT = "transport"


def item_type_for_category(category: str | TimelineItemCategory) -> TimelineItemType:
    """Map a category onto the item type shown in the timeline."""
    value = category.value if isinstance(category, TimelineItemCategory) else category
    if value == TimelineItemCategory.FOOD.value:
        return TimelineItemType.MEAL
    if value == TimelineItemCategory.TRANSPORT.value:
        return TimelineItemType.TRANSPORT
    return TimelineItemType.ACTIVITY


class TimelineItem(BaseModel):
    """One entry of a day's schedule.

    Unknown keys are preserved so content written by older versions
    survives a read-modify-write cycle.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    type: str = TimelineItemType.ACTIVITY.value
    category: str = TimelineItemCategory.OTHER.value
    title: str
    time: str | None = None
    description: str | None = None
    location: str | None = None
    estimated_price: str | None = None
    estimated_duration: str | None = None


class DayPlan(BaseModel):
    """Schedule of a single day, keyed by its ISO date."""

    model_config = ConfigDict(extra="allow")

    date: str
    items: list[TimelineItem] = Field(default_factory=list)


class GeneratedContent(BaseModel):
    """Typed view of ``Plan.generated_content``."""

    summary: str = DEFAULT_SUMMARY
    currency: str = DEFAULT_CURRENCY
    days: list[DayPlan]
    modifications: list[str] | None = None
    warnings: list[str] | None = None

    def find_day(self, date: str) -> DayPlan | None:
        """Return the day with the given ISO date, if any."""
        return next((day for day in self.days if day.date == date), None)

    def to_storage(self, stored: dict[str, Any]) -> dict[str, Any]:
        """Write the days back into the stored content.

        Only ``days`` is replaced: other top-level keys are kept as stored
        and parse defaults such as the placeholder summary are never written.
        """
        return {**stored, "days": [day.model_dump(mode="json") for day in self.days]}


def parse_generated_content(content: Any) -> GeneratedContent | None:
    """Parse stored content, returning None when its structure is invalid.

    Days need a string ``date`` and an ``items`` list, items need string
    ``id`` and ``title``. Missing category, type, summary and currency get
    defaults; non-list ``modifications``/``warnings`` are dropped.
    """
    if not isinstance(content, dict):
        return None

    raw_days = content.get("days")
    if not isinstance(raw_days, list):
        return None

    try:
        days = [_parse_day(raw_day, index) for index, raw_day in enumerate(raw_days)]
    except ValueError as e:
        logger.debug(f"Generated content rejected: {e}")
        return None

    summary = content.get("summary")
    currency = content.get("currency")
    modifications = content.get("modifications")
    warnings = content.get("warnings")

    return GeneratedContent(
        summary=summary if isinstance(summary, str) else DEFAULT_SUMMARY,
        currency=currency if isinstance(currency, str) else DEFAULT_CURRENCY,
        days=days,
        modifications=[str(m) for m in modifications] if isinstance(modifications, list) else None,
        warnings=[str(w) for w in warnings] if isinstance(warnings, list) else None,
    )


def _parse_day(raw_day: Any, index: int) -> DayPlan:
    if not isinstance(raw_day, dict):
        raise ValueError(f"Day at index {index} is not an object")

    date = raw_day.get("date")
    raw_items = raw_day.get("items")
    if not date or not isinstance(date, str) or not isinstance(raw_items, list):
        raise ValueError(f"Day at index {index} is malformed")

    items = []
    for item_index, raw_item in enumerate(raw_items):
        if not isinstance(raw_item, dict):
            raise ValueError(f"Item {item_index} in day {index} is not an object")

        item_id = raw_item.get("id")
        title = raw_item.get("title")
        if not item_id or not title or not isinstance(item_id, str) or not isinstance(title, str):
            raise ValueError(f"Item {item_index} in day {index} is missing required fields")

        data = dict(raw_item)
        data["category"] = raw_item.get("category") or TimelineItemCategory.OTHER.value
        data["type"] = raw_item.get("type") or TimelineItemType.ACTIVITY.value
        items.append(TimelineItem.model_validate(data))

    return DayPlan.model_validate({**raw_day, "items": items})


# ==================== Time ordering ====================


def convert_to_24_hour(time_str: str) -> str:
    """Normalise a time to zero-padded 24-hour "HH:mm".

    "2:30 PM" -> "14:30", "12:05 am" -> "00:05", "9:00" -> "09:00".
    Unparseable values are returned unchanged.
    """
    time = time_str.strip()

    if "am" not in time.lower() and "pm" not in time.lower():
        return time.rjust(5, "0")

    match = _AM_PM_TIME.search(time)
    if not match:
        return time

    hours = int(match.group(1))
    minutes = match.group(2)
    period = match.group(3).lower()

    if period == "pm" and hours != 12:
        hours += 12
    elif period == "am" and hours == 12:
        hours = 0

    return f"{hours:02d}:{minutes}"


def sort_timeline_items(items: Iterable[TimelineItem]) -> list[TimelineItem]:
    """Order items by time; items without a time keep their order at the end."""
    items = list(items)
    timed = [item for item in items if item.time]
    untimed = [item for item in items if not item.time]
    timed.sort(key=lambda item: convert_to_24_hour(item.time or ""))
    return timed + untimed
