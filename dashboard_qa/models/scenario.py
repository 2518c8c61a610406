"""Scenario definitions produced by the page handler."""

from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Tuple


SEPARATOR = " > "


@dataclass(frozen=True)
class Scenario:
    """One independent check or action in a page suite."""
    path: Tuple[str, ...]
    run: Callable[[], Awaitable[None]]

    @property
    def name(self) -> str:
        return SEPARATOR.join(self.path)


@dataclass
class ScenarioResult:
    """Outcome of one executed scenario."""
    name: str
    status: str
    duration_ms: int = 0
    error: Optional[str] = None
