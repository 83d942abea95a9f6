"""JSON intent router: parses client messages and dispatches them to the controller."""

import logging
from typing import Awaitable, Callable, Optional, TYPE_CHECKING
from pydantic import BaseModel, ValidationError

from lupine.broadcast.broadcaster import Broadcaster
from lupine.validation.exceptions import IntentError, MalformedIntent

if TYPE_CHECKING:
    from lupine.engine.controller import GameController

logger = logging.getLogger(__name__)


class IntentMessage(BaseModel):
    """Client message: `{"action", "role_id"?, "delta"?, "target_player_id"?}`.

    `delta` and `target_player_id` arrive as strings on the wire and are
    coerced to integers.
    """

    action: str
    role_id: Optional[str] = None
    delta: Optional[int] = None
    target_player_id: Optional[int] = None


def parse_intent(raw: str | bytes) -> IntentMessage:
    try:
        return IntentMessage.model_validate_json(raw)
    except ValidationError as exc:
        raise MalformedIntent(f"Could not parse intent: {exc.error_count()} error(s)") from exc


def _target(msg: IntentMessage) -> int:
    if msg.target_player_id is None:
        raise MalformedIntent(f"{msg.action} requires target_player_id")
    return msg.target_player_id


class IntentRouter:
    """Maps action names to controller intents.

    Errors are reported to the offending player only, as an error toast.
    """

    def __init__(self, controller: "GameController", broadcaster: Optional[Broadcaster] = None):
        self.controller = controller
        self.broadcaster = broadcaster or controller.broadcaster
        c = controller
        self._handlers: dict[str, Callable[[int, IntentMessage], Awaitable[object]]] = {
            "join_lobby": lambda pid, m: c.join_lobby(pid),
            "leave_lobby": lambda pid, m: c.leave_lobby(pid),
            "set_role_count": self._set_role_count,
            "update_role": self._set_role_count,
            "start_game": lambda pid, m: c.start_game(pid),
            "werewolf_vote": lambda pid, m: c.werewolf_vote(pid, _target(m)),
            "werewolf_vote2": lambda pid, m: c.werewolf_vote2(pid, _target(m)),
            "seer_investigate": lambda pid, m: c.seer_investigate(pid, _target(m)),
            "doctor_protect": lambda pid, m: c.doctor_protect(pid, _target(m)),
            "guard_protect": lambda pid, m: c.guard_protect(pid, _target(m)),
            "witch_heal": lambda pid, m: c.witch_heal(pid, _target(m)),
            "witch_kill": lambda pid, m: c.witch_kill(pid, _target(m)),
            "witch_pass": lambda pid, m: c.witch_pass(pid),
            "cupid_choose": lambda pid, m: c.cupid_choose(pid, _target(m)),
            "day_vote": lambda pid, m: c.day_vote(pid, _target(m)),
            "day_pass": lambda pid, m: c.day_pass(pid),
            "day_end_vote": lambda pid, m: c.day_end_vote(pid),
            "hunter_revenge": lambda pid, m: c.hunter_revenge(pid, _target(m)),
        }

    @property
    def actions(self) -> list[str]:
        return sorted(self._handlers)

    async def _set_role_count(self, player_id: int, msg: IntentMessage):
        if msg.role_id is None or msg.delta is None:
            raise MalformedIntent("set_role_count requires role_id and delta")
        return await self.controller.set_role_count(player_id, msg.role_id, msg.delta)

    async def handle(self, player_id: int, raw: str | bytes) -> object:
        """Parse and dispatch one message, raising IntentError on rejection."""
        msg = parse_intent(raw)
        handler = self._handlers.get(msg.action)
        if handler is None:
            raise MalformedIntent(f"Unknown action: {msg.action}")
        return await handler(player_id, msg)

    async def dispatch(self, player_id: int, raw: str | bytes) -> bool:
        """Handle a message, toasting any rejection to the sender.

        Returns:
            True if the intent succeeded.
        """
        try:
            await self.handle(player_id, raw)
        except IntentError as exc:
            logger.info("Rejected intent from player %d: %s", player_id, exc)
            await self.broadcaster.toast(player_id, "error", exc.message)
            return False
        return True
