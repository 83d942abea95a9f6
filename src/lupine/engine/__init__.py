"""Game engine: resolvers, chain processing, victory and the controller."""

from lupine.engine.tally import count_votes, majority_target, majority_threshold
from lupine.engine.chain_processor import process_chain
from lupine.engine.win_evaluator import check_victory, winning_team
from lupine.engine.night_resolver import NightOutcome, NightResolver
from lupine.engine.day_resolver import DayOutcome, DayResolver
from lupine.engine.controller import GameController, IntentResult, Toast

__all__ = [
    "count_votes",
    "majority_target",
    "majority_threshold",
    "process_chain",
    "check_victory",
    "winning_team",
    "NightOutcome",
    "NightResolver",
    "DayOutcome",
    "DayResolver",
    "GameController",
    "IntentResult",
    "Toast",
]
