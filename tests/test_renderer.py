import io

from balancesim.constants import Importance
from balancesim.engine import TickResult
from balancesim.renderer import RunReporter
from balancesim.state import GameEvent


def _reporter():
    stream = io.StringIO()
    return RunReporter(stream=stream, use_color=False), stream


def test_summary_line(state):
    line = RunReporter.summary(state)
    assert "gold 100" in line
    assert "seeds 40" in line
    assert "phase tutorial" in line.lower()


def test_high_events_are_printed(state):
    reporter, stream = _reporter()
    events = [
        GameEvent(480, "build", "Built Tower Blueprint", Importance.HIGH),
        GameEvent(480, "water", "Watered 1 plots", Importance.LOW),
    ]
    reporter.on_tick(TickResult(game_state=state, events=events))
    assert stream.getvalue() == "[day 1 08:00] Built Tower Blueprint\n"


def test_day_summary_on_rollover(state):
    reporter, stream = _reporter()
    reporter.on_tick(TickResult(game_state=state))
    state.time.advance(24 * 60)
    reporter.on_tick(TickResult(game_state=state))
    assert stream.getvalue().startswith("Day 1  energy")


def test_finish_reports_outcome(state):
    reporter, stream = _reporter()
    reporter.finish(TickResult(game_state=state, is_stuck=True), "no seeds")
    assert stream.getvalue().splitlines()[-1] == "Outcome: stuck (no seeds)"
    reporter.finish(TickResult(game_state=state, is_complete=True), "")
    assert stream.getvalue().splitlines()[-1] == "Outcome: complete"


def test_colorize_passthrough_without_color():
    reporter, _ = _reporter()
    assert reporter.colorize("text", Importance.CRITICAL) == "text"
    assert reporter.header("Day 2") == "Day 2"
