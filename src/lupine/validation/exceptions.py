"""Intent errors surfaced by the game controller."""


class IntentError(Exception):
    """Raised when a player intent is rejected.

    Rejected intents never mutate state: the controller rolls back the
    surrounding transaction and reports the error to the offending player.
    """

    code = "intent_error"

    def __init__(self, message: str = ""):
        self.message = message or self.__class__.__name__
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class PhaseMismatch(IntentError):
    """Intent arrived while the game is in the wrong status."""

    code = "phase_mismatch"


class NotInGame(IntentError):
    """Actor is not a player of the current game."""

    code = "not_in_game"


class DeadActor(IntentError):
    """Actor is dead (or alive, for intents that require a dead actor)."""

    code = "dead_actor"


class WrongRole(IntentError):
    code = "wrong_role"


class InvalidTarget(IntentError):
    """Target is missing, dead, the actor itself, or otherwise not allowed."""

    code = "invalid_target"


class AlreadyActed(IntentError):
    """A per-night or per-game one-shot action was already used."""

    code = "already_acted"


class InvalidStart(IntentError):
    code = "invalid_start"


class MalformedIntent(IntentError):
    """Unparseable payload, unknown action, or an internal store error."""

    code = "malformed_intent"


__all__ = [
    "IntentError",
    "PhaseMismatch",
    "NotInGame",
    "DeadActor",
    "WrongRole",
    "InvalidTarget",
    "AlreadyActed",
    "InvalidStart",
    "MalformedIntent",
]
