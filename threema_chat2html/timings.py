"""Timing of conversion phases and of individual messages.

Enabled via the THREEMA_CHAT2HTML_DEBUG_TIMING environment variable
("1", "true" or "yes"). A disabled ConversionTimings records nothing, so
callers can always pass one around.
"""

import os
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Iterator, Mapping, Optional

TIMING_ENV_VAR = "THREEMA_CHAT2HTML_DEBUG_TIMING"


def timing_enabled(environ: Optional[Mapping[str, str]] = None) -> bool:
    """Check the environment for the debug timing switch."""
    environ = os.environ if environ is None else environ
    return environ.get(TIMING_ENV_VAR, "").lower() in ("1", "true", "yes")


@dataclass
class ConversionTimings:
    """Durations collected during one conversion run.

    ``phases`` keeps (name, seconds) in execution order; ``messages`` maps
    the header line number of each message to the seconds spent rendering
    it, media resolution included.
    """

    enabled: bool = field(default_factory=timing_enabled)
    clock: Callable[[], float] = time.perf_counter
    phases: list[tuple[str, float]] = field(default_factory=list)
    messages: dict[int, float] = field(default_factory=dict)

    @contextmanager
    def phase(self, name: str) -> Iterator[None]:
        if not self.enabled:
            yield
            return
        t_start = self.clock()
        try:
            yield
        finally:
            self.phases.append((name, self.clock() - t_start))

    @contextmanager
    def message(self, line_number: int) -> Iterator[None]:
        if not self.enabled:
            yield
            return
        t_start = self.clock()
        try:
            yield
        finally:
            self.messages[line_number] = self.clock() - t_start

    @property
    def total(self) -> float:
        return sum(duration for _, duration in self.phases)

    def slowest_messages(self, count: int = 5) -> list[tuple[int, float]]:
        """Return (line number, seconds) of the slowest messages, slowest first."""
        ranked = sorted(self.messages.items(), key=lambda item: (-item[1], item[0]))
        return ranked[:count]

    def format_report(self, count: int = 5) -> list[str]:
        """Render the collected timings as ``[TIMING]`` lines."""
        if not self.enabled:
            return []
        lines = [
            f"[TIMING] {name:30s} {duration:8.3f}s" for name, duration in self.phases
        ]
        lines.append(f"[TIMING] {'Total':30s} {self.total:8.3f}s")
        if self.messages:
            lines.append(f"[TIMING] Messages rendered: {len(self.messages)}")
            for line_number, duration in self.slowest_messages(count):
                lines.append(
                    f"[TIMING]   line {line_number}: {duration * 1000:.1f}ms"
                )
        return lines

    def report(self, count: int = 5) -> None:
        for line in self.format_report(count):
            print(line, flush=True)
