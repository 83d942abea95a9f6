"""Broadcast package: the broadcaster interface and its in-repo edges."""

from lupine.broadcast.broadcaster import Broadcaster, NullBroadcaster
from lupine.broadcast.views import PlayerSummary, PlayerView, build_player_view, teammates
from lupine.broadcast.hub import Hub, OutboundMessage, ToastMessage
from lupine.broadcast.router import IntentMessage, IntentRouter, parse_intent

__all__ = [
    "Broadcaster",
    "NullBroadcaster",
    "PlayerSummary",
    "PlayerView",
    "build_player_view",
    "teammates",
    "Hub",
    "OutboundMessage",
    "ToastMessage",
    "IntentMessage",
    "IntentRouter",
    "parse_intent",
]
