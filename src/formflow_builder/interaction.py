"""State machines shared by the renderer and the browser runtime.

The renderer uses these to compute the initial widget state it writes into
the markup; ``static/formflow.js`` implements the same transitions in the
browser. Keeping them here lets the transitions be exercised without a DOM.
"""

from __future__ import annotations

import logging
import math
import re
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Sequence

logger = logging.getLogger(__name__)

CLIENT_ASSET = "formflow.js"
STATIC_DIR = Path(__file__).resolve().parent / "static"

_HEX_COLOR = re.compile(r"^#?([0-9A-Fa-f]{3}|[0-9A-Fa-f]{6})$")


class InteractionError(RuntimeError):
    """Base class for illegal widget state transitions."""


class StepNavigationError(InteractionError):
    pass


class RepeaterLimitError(InteractionError):
    pass


class UploadStateError(InteractionError):
    pass


class StepState(str, Enum):
    pending = "pending"
    active = "active"
    completed = "completed"


class StepNavigator:
    """Tracks which step of a multi-step form is active.

    Exactly one visible step is active at a time. Moving backwards (the
    previous button or an "edit" link on a review step) reactivates the
    target and resets every later step to pending.
    """

    def __init__(self, step_ids: Sequence[str], hidden: Iterable[str] = ()) -> None:
        if not step_ids:
            raise StepNavigationError("A form needs at least one step to navigate")
        self._order = list(step_ids)
        self._hidden = set(hidden)
        self._states = {step_id: StepState.pending for step_id in self._order}
        visible = self.visible_steps()
        first = visible[0] if visible else self._order[0]
        self._states[first] = StepState.active

    @property
    def current(self) -> str:
        return next(step_id for step_id, state in self._states.items() if state is StepState.active)

    @property
    def states(self) -> dict[str, StepState]:
        return dict(self._states)

    def visible_steps(self) -> list[str]:
        return [step_id for step_id in self._order if step_id not in self._hidden]

    def set_hidden(self, hidden: Iterable[str]) -> None:
        self._hidden = set(hidden)

    def is_last(self) -> bool:
        visible = self.visible_steps()
        return not visible or visible[-1] == self.current

    def advance(self) -> str:
        visible = self.visible_steps()
        current = self.current
        later = [step_id for step_id in visible if self._order.index(step_id) > self._order.index(current)]
        if not later:
            raise StepNavigationError(f"Step {current} is the last step")
        self._states[current] = StepState.completed
        self._states[later[0]] = StepState.active
        return later[0]

    def back(self) -> str:
        visible = self.visible_steps()
        current = self.current
        earlier = [step_id for step_id in visible if self._order.index(step_id) < self._order.index(current)]
        if not earlier:
            raise StepNavigationError(f"Step {current} is the first step")
        return self.go_to(earlier[-1])

    def go_to(self, step_id: str) -> str:
        if step_id not in self._states:
            raise StepNavigationError(f"Unknown step {step_id}")
        target = self._order.index(step_id)
        if target > self._order.index(self.current) and self._states[step_id] is not StepState.completed:
            raise StepNavigationError(f"Step {step_id} has not been reached yet")
        for position, other in enumerate(self._order):
            if position > target:
                self._states[other] = StepState.pending
        self._states[step_id] = StepState.active
        return step_id

    def progress_percent(self) -> int:
        visible = self.visible_steps()
        if not visible:
            return 0
        position = visible.index(self.current) + 1 if self.current in visible else 1
        return round(position / len(visible) * 100)


class RepeaterCounter:
    """Item indices for one repeater.

    Indices only ever grow, so an item added after a removal can never reuse
    a name that is still present in the submitted data.
    """

    def __init__(self, *, min_items: int = 1, max_items: int = 10, existing: int = 0) -> None:
        self.min_items = max(0, min_items)
        self.max_items = max(self.min_items, max_items) if max_items > 0 else 0
        self._indices: list[int] = []
        self.next_index = 0
        for _ in range(existing):
            self._indices.append(self._claim())

    @property
    def indices(self) -> list[int]:
        return list(self._indices)

    def __len__(self) -> int:
        return len(self._indices)

    def can_add(self) -> bool:
        return not self.max_items or len(self._indices) < self.max_items

    def can_remove(self) -> bool:
        return len(self._indices) > self.min_items

    def add(self) -> int:
        if not self.can_add():
            raise RepeaterLimitError(f"Repeater already holds the maximum of {self.max_items} items")
        index = self._claim()
        self._indices.append(index)
        return index

    def remove(self, index: int) -> None:
        if index not in self._indices:
            raise RepeaterLimitError(f"Repeater has no item {index}")
        if not self.can_remove():
            raise RepeaterLimitError(f"Repeater requires at least {self.min_items} items")
        self._indices.remove(index)

    def _claim(self) -> int:
        index = self.next_index
        self.next_index += 1
        return index


class UploadStatus(str, Enum):
    idle = "idle"
    uploading = "uploading"
    complete = "complete"
    error = "error"
    cancelled = "cancelled"


class UploadTracker:
    _TRANSITIONS = {
        UploadStatus.idle: {UploadStatus.uploading},
        UploadStatus.uploading: {UploadStatus.complete, UploadStatus.error, UploadStatus.cancelled},
        UploadStatus.complete: {UploadStatus.idle},
        UploadStatus.error: {UploadStatus.idle, UploadStatus.uploading},
        UploadStatus.cancelled: {UploadStatus.idle, UploadStatus.uploading},
    }

    def __init__(self, filename: str = "") -> None:
        self.filename = filename
        self.status = UploadStatus.idle
        self.progress = 0
        self.error: str | None = None

    def _move(self, status: UploadStatus) -> None:
        if status not in self._TRANSITIONS[self.status]:
            raise UploadStateError(f"Cannot move upload from {self.status.value} to {status.value}")
        self.status = status

    def start(self) -> None:
        self._move(UploadStatus.uploading)
        self.progress = 0
        self.error = None

    def report_progress(self, loaded: int, total: int) -> int:
        if self.status is not UploadStatus.uploading:
            raise UploadStateError("Progress reported for an upload that is not running")
        if total > 0:
            self.progress = min(100, max(self.progress, int(loaded * 100 / total)))
        return self.progress

    def complete(self) -> None:
        self._move(UploadStatus.complete)
        self.progress = 100

    def fail(self, message: str) -> None:
        self._move(UploadStatus.error)
        self.error = message
        logger.warning("Upload failed", extra={"upload_filename": self.filename, "error": message})

    def cancel(self) -> None:
        self._move(UploadStatus.cancelled)
        self.progress = 0

    def reset(self) -> None:
        self._move(UploadStatus.idle)
        self.progress = 0
        self.error = None


def clamp_number(value: Any, minimum: Any = None, maximum: Any = None, step: Any = None) -> float | None:
    """Snap ``value`` onto the ``[minimum, maximum]`` range and step grid."""

    def to_float(raw: Any) -> float | None:
        if raw is None or raw == "" or isinstance(raw, bool):
            return None
        try:
            number = float(raw)
        except (TypeError, ValueError):
            return None
        return number if math.isfinite(number) else None

    number = to_float(value)
    low = to_float(minimum)
    high = to_float(maximum)
    increment = to_float(step)
    if number is None:
        return low
    if increment and increment > 0:
        base = low if low is not None else 0.0
        number = base + round((number - base) / increment) * increment
        # Avoid 0.30000000000000004-style drift from the step arithmetic.
        number = round(number, 10)
    if low is not None and number < low:
        number = low
    if high is not None and number > high:
        number = high
    return number


def format_number(value: float | None) -> str:
    if value is None:
        return ""
    return str(int(value)) if float(value).is_integer() else repr(float(value))


def normalize_hex_color(value: Any, default: str = "#000000") -> str:
    text = str(value or "").strip()
    match = _HEX_COLOR.match(text)
    if not match:
        return default.upper() if default else "#000000"
    digits = match.group(1)
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return f"#{digits.upper()}"


def client_asset() -> str:
    """Source of the browser runtime shipped with the package."""
    return (STATIC_DIR / CLIENT_ASSET).read_text(encoding="utf-8")


__all__ = [
    "InteractionError",
    "StepNavigationError",
    "RepeaterLimitError",
    "UploadStateError",
    "StepState",
    "StepNavigator",
    "RepeaterCounter",
    "UploadStatus",
    "UploadTracker",
    "clamp_number",
    "format_number",
    "normalize_hex_color",
    "client_asset",
    "CLIENT_ASSET",
    "STATIC_DIR",
]
