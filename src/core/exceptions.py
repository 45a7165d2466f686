"""
Exceptions shared by the domain, service and boundary layers.

All of them derive from GameError, so a caller driving a match can catch a single type.
"""


class GameError(Exception):
    """Base class for anything that goes wrong while playing a game."""


class GameStateError(GameError):
    """The game (or match) is not in a state that allows the requested action."""


class IllegalMoveError(GameError):
    """The requested move is not among the legal moves of the piece."""


class NotYourTurnError(GameError):
    """A player tried to act while it is the opponent's turn."""


class InvalidStateError(GameError):
    """A board or snapshot could not be turned into a consistent Game."""


class InvalidRequestError(GameError):
    """Boundary-level validation failed (ex. a square name that is not algebraic notation)."""


class RepositoryError(GameError):
    """Lookup in the match registry failed."""
