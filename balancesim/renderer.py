from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO

from blessed import Terminal

from .constants import Importance
from .engine import TickResult
from .state import GameState

logger = logging.getLogger(__name__)

HEADER_RGB = (120, 200, 255)


class RunReporter:
    """Colored terminal report of a simulation run."""

    IMPORTANCE_ATTRS = {
        Importance.LOW: "white",
        Importance.MEDIUM: "yellow",
        Importance.HIGH: "bold_green",
        Importance.CRITICAL: "bold_red",
    }

    def __init__(self, stream: Optional[TextIO] = None, use_color: bool = True) -> None:
        self.stream = stream or sys.stdout
        self.use_color = use_color
        self.term = Terminal(stream=self.stream)
        if use_color and not self.term.does_styling:
            # Non-tty streams report no styling; force escape codes anyway
            self.term = Terminal(stream=self.stream, force_styling=True)
        self._day: Optional[int] = None

    def colorize(self, text: str, importance: Importance) -> str:
        if not self.use_color:
            return text
        attr = self.IMPORTANCE_ATTRS.get(importance)
        if attr and hasattr(self.term, attr):
            return getattr(self.term, attr)(text)
        return text

    def header(self, text: str) -> str:
        if not self.use_color:
            return text
        return self.term.color_rgb(*HEADER_RGB) + text + self.term.normal

    def write(self, line: str) -> None:
        self.stream.write(line + "\n")

    @staticmethod
    def summary(state: GameState) -> str:
        res = state.resources
        prog = state.progression
        return (
            f"energy {res.energy.current:.0f}/{res.energy.max:.0f}  gold {res.gold}  "
            f"water {res.water.current:.0f}/{res.water.max:.0f}  seeds {res.total_seeds}  "
            f"plots {prog.farm_plots}  level {prog.hero_level}  "
            f"helpers {len(state.helpers.gnomes)}  phase {prog.current_phase.value}"
        )

    def on_tick(self, result: TickResult) -> None:
        state = result.game_state
        day = state.time.day
        if self._day is None:
            self._day = day
        elif day != self._day:
            self.write(self.header(f"Day {self._day}") + "  " + self.summary(state))
            self._day = day
        for event in result.events:
            if event.importance in (Importance.HIGH, Importance.CRITICAL):
                stamp = f"[day {day} {state.time.clock}]"
                self.write(f"{stamp} " + self.colorize(event.description, event.importance))

    def finish(self, result: TickResult, bottleneck: str) -> None:
        state = result.game_state
        if result.is_complete:
            outcome = self.colorize("complete", Importance.HIGH)
        elif result.is_stuck:
            outcome = self.colorize(f"stuck ({bottleneck})", Importance.CRITICAL)
        else:
            outcome = self.colorize("out of days", Importance.MEDIUM)
        self.write(self.header(f"Final day {state.time.day}") + "  " + self.summary(state))
        self.write(f"Outcome: {outcome}")
