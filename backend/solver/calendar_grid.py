from __future__ import annotations

import re
from dataclasses import dataclass, field


ALL_DAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
SATURDAY = "Saturday"

# Block keys look like "Monday_9:30–11:30"; a plain hyphen is accepted too.
_RANGE_SEPARATORS = ("–", "-")
_NON_DIGITS = re.compile(r"[^0-9]")


class BlockKeyError(ValueError):
    """A fixed-block key could not be resolved against the calendar."""


def short_day(day: str) -> str:
    return day[:3]


def _time_number(value: str) -> int | None:
    digits = _NON_DIGITS.sub("", value or "")
    return int(digits) if digits else None


def split_time_range(text: str) -> tuple[str, str]:
    for sep in _RANGE_SEPARATORS:
        if sep in text:
            start, _, end = text.partition(sep)
            if start.strip() and end.strip():
                return start.strip(), end.strip()
    raise BlockKeyError(f"Time range '{text}' has no start/end separator")


@dataclass(frozen=True)
class TimeSlotDef:
    index: int
    label: str
    start: str
    end: str

    @property
    def start_number(self) -> int | None:
        return _time_number(self.start)

    @property
    def end_number(self) -> int | None:
        return _time_number(self.end)


@dataclass(frozen=True)
class BlockRef:
    day_index: int
    slot_indices: tuple[int, ...]


@dataclass(frozen=True)
class CalendarGrid:
    """Ordered days and time slots for one generation run.

    `lunch_index` is never assignable. When `saturday_cutoff_index` is set, Saturday
    slots after `saturday_cutoff_index` are not assignable either.
    """

    days: tuple[str, ...]
    slots: tuple[TimeSlotDef, ...]
    lunch_index: int
    saturday_cutoff_index: int | None = None
    _day_lookup: dict[str, int] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not 0 <= self.lunch_index < len(self.slots):
            raise ValueError(f"lunch_index {self.lunch_index} outside slot table of {len(self.slots)}")
        for i, d in enumerate(self.days):
            self._day_lookup.setdefault(d[:3].lower(), i)

    @classmethod
    def build(
        cls,
        *,
        time_slots: list[str],
        lunch_index: int,
        include_saturday: bool = True,
        saturday_cutoff: bool = True,
        saturday_cutoff_index: int | None = None,
    ) -> "CalendarGrid":
        days = tuple(ALL_DAYS if include_saturday else ALL_DAYS[:5])
        slots = []
        for i, label in enumerate(time_slots):
            start, end = split_time_range(label)
            slots.append(TimeSlotDef(index=i, label=label, start=start, end=end))
        cutoff = saturday_cutoff_index if (include_saturday and saturday_cutoff) else None
        return cls(days=days, slots=tuple(slots), lunch_index=lunch_index, saturday_cutoff_index=cutoff)

    @property
    def slot_labels(self) -> list[str]:
        return [s.label for s in self.slots]

    def day_index(self, name: str) -> int | None:
        if not name:
            return None
        return self._day_lookup.get(name.strip()[:3].lower())

    def slot_index(self, label: str) -> int | None:
        """Exact label lookup first, then by start/end digits."""
        for s in self.slots:
            if s.label == label:
                return s.index
        try:
            start, end = split_time_range(label)
        except BlockKeyError:
            return None
        start_n, end_n = _time_number(start), _time_number(end)
        for s in self.slots:
            if s.start_number == start_n and s.end_number == end_n:
                return s.index
        return None

    def is_lunch(self, slot: int) -> bool:
        return slot == self.lunch_index

    def is_assignable(self, day_index: int, slot: int) -> bool:
        if self.is_lunch(slot):
            return False
        if self.saturday_cutoff_index is not None and self.days[day_index] == SATURDAY:
            return slot <= self.saturday_cutoff_index
        return True

    def resolve_range(self, start: str, end: str) -> tuple[int, ...]:
        """Slot indices from the slot starting at `start` to the one ending at `end`, lunch excluded."""
        start_n, end_n = _time_number(start), _time_number(end)
        first = -1
        last = -1
        for s in self.slots:
            if self.is_lunch(s.index):
                continue
            if s.start_number == start_n:
                first = s.index
            if s.end_number == end_n:
                last = s.index
        if first == -1 or last == -1 or last < first:
            raise BlockKeyError(f"No slot boundary matches {start}–{end}")
        return tuple(i for i in range(first, last + 1) if not self.is_lunch(i))

    def resolve_block(self, key: str) -> BlockRef:
        day_name, sep, time_range = key.partition("_")
        if not sep:
            raise BlockKeyError(f"Block key '{key}' is not of the form Day_Start–End")
        day_idx = self.day_index(day_name)
        if day_idx is None:
            raise BlockKeyError(f"Day '{day_name}' is not in use")
        start, end = split_time_range(time_range)
        return BlockRef(day_index=day_idx, slot_indices=self.resolve_range(start, end))
