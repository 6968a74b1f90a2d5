"""Error taxonomy for the game.

Every error carries a human-readable message; that message is what the
player sees, there are no structured error codes.
"""


class GameError(Exception):
    """Base class for errors surfaced to the player."""


class ConfigurationError(GameError):
    """A required URL or key is missing. Fatal for the dependent feature."""


class BackendError(GameError):
    """The player backend rejected a create/read/update call."""


class UnknownPlayerError(BackendError):
    """The persisted identity does not exist on the backend."""

    def __init__(self, player_id: str):
        super().__init__(f"Unknown player: {player_id}")
        self.player_id = player_id


class PriceFetchError(GameError):
    """The price API failed or answered in an unexpected shape."""


class InvalidGuessError(GameError):
    pass


def describe(exc: BaseException) -> str:
    """Return the message to show for an exception."""
    message = str(exc)
    return message or exc.__class__.__name__
