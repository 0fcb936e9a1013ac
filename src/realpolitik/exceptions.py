"""Custom exceptions for Realpolitik."""


class RealpolitikError(Exception):
    """Base exception for all Realpolitik engine errors."""


class StateInvariantError(RealpolitikError, ValueError):
    """A mutation would break a game state invariant.

    Raised for unknown countries, cities or deals in a mutation and for
    illegal status transitions. These indicate a programming error in the
    caller, never a normal game outcome.
    """


class LLMUnavailableError(RealpolitikError):
    """The text-completion collaborator failed after all retries."""

    def __init__(self, message: str, attempts: int = 0):
        super().__init__(message)
        self.attempts = attempts
