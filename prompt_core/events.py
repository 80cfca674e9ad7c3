"""
Analytics events describing prompt impressions and user responses.

Event delivery is fire-and-forget. Mappers in this module never raise, so a
broken analytics sink cannot undo an already recorded prompt history.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, Optional

from prompt_runtime import logger as app_logger
from prompt_shared.models import PromptOutcome, Variant

_LOGGER = app_logger.get_logger("events")
_MAX_REPORTED_SHOWN_COUNT = 10


class PromptEventName(Enum):
    SHOWN = "prompt_shown"
    ACCEPTED = "prompt_accepted"
    DISMISSED = "prompt_dismissed"
    DISMISSED_PERMANENTLY = "prompt_dismissed_permanently"


_OUTCOME_EVENTS = {
    PromptOutcome.ACCEPTED: PromptEventName.ACCEPTED,
    PromptOutcome.DISMISSED: PromptEventName.DISMISSED,
    PromptOutcome.DISMISSED_PERMANENTLY: PromptEventName.DISMISSED_PERMANENTLY,
}


@dataclass(frozen=True, slots=True)
class PromptEvent:
    name: PromptEventName
    variant: Variant
    times_shown: int

    @property
    def parameters(self) -> Dict[str, str]:
        return {
            "variant": self.variant.value,
            "times_shown": format_times_shown(self.times_shown),
        }

    def to_dict(self) -> Dict[str, object]:
        return {"event": self.name.value, **self.parameters}


def event_for_outcome(outcome: PromptOutcome, variant: Variant, times_shown: int) -> PromptEvent:
    """Map a recorded outcome to the event reported for it."""
    return PromptEvent(name=_OUTCOME_EVENTS[outcome], variant=variant, times_shown=times_shown)


def format_times_shown(value: int) -> str:
    # Bucketed so analytics never sees an unbounded cardinality parameter.
    return f"{_MAX_REPORTED_SHOWN_COUNT}+" if value > _MAX_REPORTED_SHOWN_COUNT else str(value)


class LoggingEventMapper:
    """Writes each event to the application log."""

    def fire(self, event: PromptEvent) -> None:
        _LOGGER.info("Prompt event {} {}", event.name.value, event.parameters)


class JsonlEventMapper:
    """
    Appends one JSON line per event to a file.

    All writes are best-effort; failures are logged and swallowed.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    def fire(self, event: PromptEvent) -> None:
        record = event.to_dict()
        record["ts"] = time.time()
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as handle:
                handle.write(json.dumps(record, ensure_ascii=False) + "\n")
        except OSError as exc:
            _LOGGER.warning("JsonlEventMapper: write to {} failed: {}", self._path, exc)


class CompositeEventMapper:
    """Fans an event out to several mappers, isolating their failures."""

    def __init__(self, mappers: Optional[Iterable[object]] = None) -> None:
        self._mappers = list(mappers or [])

    def fire(self, event: PromptEvent) -> None:
        for mapper in self._mappers:
            try:
                mapper.fire(event)
            except Exception:
                _LOGGER.exception("Event mapper {} failed for {}", type(mapper).__name__, event.name.value)
