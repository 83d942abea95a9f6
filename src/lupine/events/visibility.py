"""Action visibility filtering.

Each action carries a visibility level that decides which players may read
its description:

- public: everyone
- team_werewolf: members of the werewolf team (Werewolf, Wolf Cub)
- actor: only the acting player
"""

from typing import Iterable, Optional

from lupine.events.actions import Action, Visibility


def can_see(action: Action, viewer_id: int, viewer_team: Optional[str]) -> bool:
    """Return True if the viewer may read this action's description.

    Args:
        action: The action row.
        viewer_id: Player id of the viewer.
        viewer_team: Team value of the viewer's role ("villager", "werewolf"),
            or None before roles are assigned.
    """
    if action.visibility == Visibility.PUBLIC:
        return True
    if action.visibility == Visibility.TEAM_WEREWOLF:
        return viewer_team == "werewolf"
    if action.visibility == Visibility.ACTOR:
        return action.actor == viewer_id
    return False


def visible_history(
    actions: Iterable[Action],
    viewer_id: int,
    viewer_team: Optional[str],
) -> list[Action]:
    """Filter a log down to the rows a viewer may read.

    Rows with an empty description are bookkeeping (e.g. Cupid's tentative
    first choice) and never appear in history.
    """
    return [
        action for action in actions
        if action.description and can_see(action, viewer_id, viewer_team)
    ]


def public_descriptions(actions: Iterable[Action]) -> list[str]:
    """Descriptions of all public rows, in log order."""
    return [
        action.description for action in actions
        if action.description and action.visibility == Visibility.PUBLIC
    ]
