"""Failure kinds raised by the Pairleroy quota and assignment engine.

All of them propagate straight to the caller: an infeasible configuration is
a property of the inputs, so nothing here is retried or recovered locally.
"""

from __future__ import annotations

from pairleroy.engine.errors import GameEngineError


class PairleroyError(GameEngineError):
    """Base class for Pairleroy engine failures."""
    pass


class InvalidInputError(PairleroyError):
    """Weights sum to zero or less, or a vector has the wrong length."""
    pass


class InfeasibleQuotaError(PairleroyError):
    """The capped apportionment cannot reach the requested total."""
    pass


class InvariantViolationError(PairleroyError):
    """An internal unit-conservation check failed."""
    pass


class InfeasibleTriColorError(PairleroyError):
    """Tri-colour tiles need at least 3 colours with remaining units."""
    pass


class InfeasibleTriAssignmentError(PairleroyError):
    """Ran out of distinct colours while building tri-colour triples."""
    pass


class AssignmentInfeasibleError(PairleroyError):
    """The backtracking search found no assignment within its budget."""

    def __init__(self, message: str, backtracks: int = 0):
        self.message = message
        self.backtracks = backtracks
        super().__init__(message)
