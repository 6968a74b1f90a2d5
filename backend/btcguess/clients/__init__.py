"""Outbound collaborators: the player backend and the price API."""

from .players import PlayerBackend, RestPlayerBackend, SqlPlayerBackend, build_player_backend
from .price import PriceClient, build_price_client

__all__ = [
    "PlayerBackend",
    "RestPlayerBackend",
    "SqlPlayerBackend",
    "build_player_backend",
    "PriceClient",
    "build_price_client",
]
