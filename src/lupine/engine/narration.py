"""History descriptions written into the action log."""

from typing import Optional

from lupine.events.actions import Phase
from lupine.models.roles import display_name


def who(name: str, role: Optional[str]) -> str:
    return f"{name} ({display_name(role)})"


def werewolf_vote(round: int, actor: str, target: str, second: bool = False) -> str:
    kill = "second kill" if second else "kill"
    return f"Night {round}: {actor} voted to {kill} {target}"


def seer_result(round: int, target: str, is_werewolf: bool) -> str:
    verdict = "a werewolf" if is_werewolf else "not a werewolf"
    return f"Night {round}: You investigated {target}: they are {verdict}"


def doctor_protect(round: int, target: str) -> str:
    return f"Night {round}: You protected {target}"


def guard_protect(round: int, target: str) -> str:
    return f"Night {round}: You guarded {target}"


def witch_heal(round: int, target: str) -> str:
    return f"Night {round}: You used your heal potion on {target}"


def witch_kill(round: int, target: str) -> str:
    return f"Night {round}: You poisoned {target}"


def witch_pass(round: int) -> str:
    return f"Night {round}: You finished your turn"


def cupid_link(round: int, a: str, b: str) -> str:
    return f"Night {round}: You linked {a} and {b} as lovers"


def night_death(round: int, victim: str) -> str:
    return f"Night {round}: {victim} was found dead"


def day_vote(round: int, actor: str, target: str) -> str:
    return f"Day {round}: {actor} voted to eliminate {target}"


def day_pass(round: int, actor: str) -> str:
    return f"Day {round}: {actor} passed"


def elimination(round: int, victim: str) -> str:
    return f"Day {round}: {victim} was eliminated by the village"


def hunter_shot(round: int, hunter: str, target: str) -> str:
    return f"Day {round}: Hunter {hunter} shot {target}"


def heartbreak(phase: Phase, round: int, victim: str, lover: str) -> str:
    return f"{phase.label} {round}: {victim} died of heartbreak after their lover {lover} was killed"
