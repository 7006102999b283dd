"""Storage collaborator used by the league operations.

The league code never touches a global database handle; it is handed a
``LeagueStore`` and only calls the operations below.
"""

import logging
from datetime import datetime
from typing import Protocol

from sqlalchemy.orm import Session, selectinload

from . import models
from .database import commit_or_rollback, storage_guard
from .scoring import PlayerResult
from .stats import LeaderboardRow, StatisticsRow

logger = logging.getLogger(__name__)


class LeagueStore(Protocol):
    def create_session_with_players(
        self,
        game_id: int,
        group_id: int,
        template_id: int | None,
        played_at: datetime | None,
        results: list[PlayerResult],
    ) -> models.GameSession: ...

    def find_session_players_by_group(self, group_id: int) -> list[LeaderboardRow]: ...

    def find_session_players_by_user(self, user_id: int) -> list[StatisticsRow]: ...

    def find_user(self, user_id: int) -> models.User | None: ...

    def find_game(self, game_id: int) -> models.Game | None: ...

    def find_group(self, group_id: int) -> models.Group | None: ...

    def find_template(self, template_id: int) -> models.ScoreTemplate | None: ...


def session_query(db: Session):
    return db.query(models.GameSession).options(
        selectinload(models.GameSession.game),
        selectinload(models.GameSession.players).selectinload(models.SessionPlayer.user),
    )


class SqlLeagueStore:
    def __init__(self, db: Session) -> None:
        self.db = db

    def create_session_with_players(
        self,
        game_id: int,
        group_id: int,
        template_id: int | None,
        played_at: datetime | None,
        results: list[PlayerResult],
    ) -> models.GameSession:
        session = models.GameSession(game_id=game_id, group_id=group_id, template_id=template_id)
        if played_at is not None:
            session.played_at = played_at

        session.players = [
            models.SessionPlayer(
                user_id=result.user_id,
                raw_score=result.raw_score,
                placement=result.placement,
                points_awarded=result.points_awarded,
                score_details=result.score_details,
            )
            for result in results
        ]

        # Session and player rows go out in one transaction.
        with commit_or_rollback(self.db):
            self.db.add(session)

        logger.debug("Stored session %s with %d players", session.id, len(results))
        with storage_guard():
            return session_query(self.db).filter(models.GameSession.id == session.id).one()

    def find_session_players_by_group(self, group_id: int) -> list[LeaderboardRow]:
        with storage_guard():
            rows = (
                self.db.query(
                    models.SessionPlayer.user_id,
                    models.User.name,
                    models.SessionPlayer.points_awarded,
                    models.SessionPlayer.placement,
                )
                .join(models.GameSession, models.SessionPlayer.session_id == models.GameSession.id)
                .join(models.User, models.SessionPlayer.user_id == models.User.id)
                .filter(models.GameSession.group_id == group_id)
                .order_by(models.SessionPlayer.id.asc())
                .all()
            )

        return [LeaderboardRow(user_id, name, points, placement) for user_id, name, points, placement in rows]

    def find_session_players_by_user(self, user_id: int) -> list[StatisticsRow]:
        with storage_guard():
            results = (
                self.db.query(models.SessionPlayer)
                .options(
                    selectinload(models.SessionPlayer.session).selectinload(models.GameSession.game),
                    selectinload(models.SessionPlayer.session).selectinload(models.GameSession.players),
                )
                .filter(models.SessionPlayer.user_id == user_id)
                .order_by(models.SessionPlayer.id.asc())
                .all()
            )

        return [
            StatisticsRow(
                game_name=result.session.game.name,
                placement=result.placement,
                player_count=len(result.session.players),
            )
            for result in results
        ]

    def find_user(self, user_id: int) -> models.User | None:
        with storage_guard():
            return self.db.get(models.User, user_id)

    def find_game(self, game_id: int) -> models.Game | None:
        with storage_guard():
            return self.db.get(models.Game, game_id)

    def find_group(self, group_id: int) -> models.Group | None:
        with storage_guard():
            return self.db.get(models.Group, group_id)

    def find_template(self, template_id: int) -> models.ScoreTemplate | None:
        with storage_guard():
            return self.db.get(models.ScoreTemplate, template_id)
