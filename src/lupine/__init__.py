"""Lupine: a multiplayer Werewolf game engine server."""

__version__ = "0.1.0"
