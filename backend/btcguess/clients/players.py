"""Player backend: a remote table keyed by identity with {id, score, updated_at}."""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

import requests
from sqlalchemy.exc import SQLAlchemyError

from btcguess.errors import BackendError, ConfigurationError, UnknownPlayerError

logger = logging.getLogger(__name__)

UNEXPECTED_ROW = 'Player backend returned an unexpected row'


class PlayerBackend:
    """Contract consumed by the game session."""

    def create_player(self, score: int = 0) -> str:
        raise NotImplementedError

    def read_score(self, player_id: str) -> int:
        raise NotImplementedError

    def update_score(self, player_id: str, score: int, updated_at: datetime) -> None:
        raise NotImplementedError


class SqlPlayerBackend(PlayerBackend):
    """Players stored in the app database through Flask-SQLAlchemy."""

    def __init__(self, db):
        self.db = db

    def create_player(self, score: int = 0) -> str:
        from btcguess.models import Player

        try:
            player = Player(score=score)
            self.db.session.add(player)
            self.db.session.commit()
            return player.id
        except SQLAlchemyError as exc:
            self.db.session.rollback()
            raise BackendError(f"Could not create player: {exc}") from exc

    def read_score(self, player_id: str) -> int:
        player = self._get(player_id)
        return int(player.score or 0)

    def update_score(self, player_id: str, score: int, updated_at: datetime) -> None:
        player = self._get(player_id)
        try:
            player.score = score
            player.updated_at = updated_at
            self.db.session.add(player)
            self.db.session.commit()
        except SQLAlchemyError as exc:
            self.db.session.rollback()
            raise BackendError(f"Could not update score: {exc}") from exc

    def _get(self, player_id: str):
        from btcguess.models import Player

        try:
            player = self.db.session.get(Player, player_id)
        except SQLAlchemyError as exc:
            self.db.session.rollback()
            raise BackendError(f"Could not read player: {exc}") from exc
        if player is None:
            raise UnknownPlayerError(player_id)
        return player


class RestPlayerBackend(PlayerBackend):
    """Players stored in a hosted PostgREST table (Supabase)."""

    table = 'players'

    def __init__(self, url: str, key: str, timeout: float = 10.0,
                 session: Optional[requests.Session] = None):
        self.base_url = f"{url.rstrip('/')}/rest/v1/{self.table}"
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            'apikey': key,
            'Authorization': f'Bearer {key}',
            'Content-Type': 'application/json',
        })

    def create_player(self, score: int = 0) -> str:
        rows = self._request(
            'POST', json=[{'score': score}],
            headers={'Prefer': 'return=representation'},
        )
        if not rows:
            raise BackendError('Player was not created')
        player_id = _first_value(rows, 'id')
        if player_id is None:
            raise BackendError(UNEXPECTED_ROW)
        return str(player_id)

    def read_score(self, player_id: str) -> int:
        rows = self._request('GET', params={'select': 'score', 'id': f'eq.{player_id}'})
        if not rows:
            raise UnknownPlayerError(player_id)
        try:
            return int(_first_value(rows, 'score'))
        except (TypeError, ValueError) as exc:
            raise BackendError(UNEXPECTED_ROW) from exc

    def update_score(self, player_id: str, score: int, updated_at: datetime) -> None:
        rows = self._request(
            'PATCH',
            params={'id': f'eq.{player_id}'},
            json={'score': score, 'updated_at': updated_at.isoformat()},
            headers={'Prefer': 'return=representation'},
        )
        if not rows:
            raise UnknownPlayerError(player_id)
        _first_value(rows, 'id')

    def _request(self, method: str, **kwargs) -> Any:
        try:
            res = self.session.request(method, self.base_url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise BackendError(str(exc)) from exc
        if res.status_code >= 400:
            raise BackendError(_error_message(res))
        if not res.content:
            return []
        try:
            return res.json()
        except ValueError as exc:
            raise BackendError('Player backend returned invalid JSON') from exc


def _first_value(rows, key: str) -> Any:
    try:
        return rows[0][key]
    except (KeyError, IndexError, TypeError) as exc:
        raise BackendError(UNEXPECTED_ROW) from exc


def _error_message(res) -> str:
    try:
        body: Dict[str, Any] = res.json()
    except ValueError:
        body = {}
    message = body.get('message') if isinstance(body, dict) else None
    return message or f"Player backend error ({res.status_code})"


def build_player_backend(config, db) -> PlayerBackend:
    """Construct the backend named by PLAYER_BACKEND, or raise ConfigurationError."""
    kind = (config.get('PLAYER_BACKEND') or 'supabase').lower()
    if kind == 'sql':
        return SqlPlayerBackend(db)
    if kind == 'supabase':
        url = config.get('SUPABASE_URL')
        key = config.get('SUPABASE_ANON_KEY')
        if not url or not key:
            raise ConfigurationError('Missing Supabase URL or Anon Key')
        logger.info(f"[backend] using REST player table at {url}")
        return RestPlayerBackend(url, key, timeout=float(config.get('HTTP_TIMEOUT_SEC', 10)))
    raise ConfigurationError(f"Unknown PLAYER_BACKEND: {kind}")
