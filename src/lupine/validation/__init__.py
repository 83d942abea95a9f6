"""Intent validation.

Each rule category has its own file. Validators raise an `IntentError`
subclass on the first broken rule and return the rows they resolved.

Files:
- exceptions.py: IntentError and its subclasses
- common.py: phase, membership, liveness, role and target checks
- lobby.py: role configuration and game start
- night_werewolf.py: werewolf kill votes
- night_seer.py: Seer investigation and Doctor protection
- night_guard.py: Guard protection
- night_witch.py: Witch heal, poison and pass
- night_cupid.py: Cupid's two-step link
- day_voting.py: day votes and passes
- hunter.py: Hunter revenge
"""

from .exceptions import (
    IntentError,
    PhaseMismatch,
    NotInGame,
    DeadActor,
    WrongRole,
    InvalidTarget,
    AlreadyActed,
    InvalidStart,
    MalformedIntent,
)
from .common import require_game, require_member, require_status
from .lobby import parse_role, validate_role_delta, validate_start
from .night_werewolf import validate_werewolf_vote
from .night_seer import validate_seer_action, validate_doctor_action
from .night_guard import validate_guard_action
from .night_witch import validate_witch_heal, validate_witch_poison, validate_witch_pass
from .night_cupid import validate_cupid_choice
from .day_voting import validate_day_voter, validate_day_vote
from .hunter import validate_hunter_revenge

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
    "require_game",
    "require_member",
    "require_status",
    "parse_role",
    "validate_role_delta",
    "validate_start",
    "validate_werewolf_vote",
    "validate_seer_action",
    "validate_doctor_action",
    "validate_guard_action",
    "validate_witch_heal",
    "validate_witch_poison",
    "validate_witch_pass",
    "validate_cupid_choice",
    "validate_day_voter",
    "validate_day_vote",
    "validate_hunter_revenge",
]
