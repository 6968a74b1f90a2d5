from typing import Callable, Optional

PLAYER_ID_KEY = 'playerId'


class IdentityStore:
    """Durable client-side slot holding the player identity."""

    def get(self) -> Optional[str]:
        raise NotImplementedError

    def set(self, player_id: str) -> None:
        raise NotImplementedError


class MemoryIdentityStore(IdentityStore):
    def __init__(self, player_id: Optional[str] = None):
        self.player_id = player_id or None

    def get(self) -> Optional[str]:
        return self.player_id

    def set(self, player_id: str) -> None:
        self.player_id = player_id


class ClientIdentityStore(MemoryIdentityStore):
    """Identity held by the browser.

    Seeded from what the client sent when it connected; writes are pushed
    back through ``persist`` so the client can store them under
    PLAYER_ID_KEY.
    """

    def __init__(self, player_id: Optional[str], persist: Callable[[str], None]):
        super().__init__(player_id)
        self.persist = persist

    def set(self, player_id: str) -> None:
        super().set(player_id)
        self.persist(player_id)
