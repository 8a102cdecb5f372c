from __future__ import annotations


class SimulationError(Exception):
    """Base class for internal simulation defects."""


class InvariantViolationError(SimulationError):
    """A critical state invariant failed after a tick in strict mode."""

    def __init__(self, errors: list[str]) -> None:
        super().__init__("; ".join(errors))
        self.errors = errors


class ParameterPathError(SimulationError, KeyError):
    """A dot-path does not address a node of the parameter tree."""
