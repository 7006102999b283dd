import logging

from . import errors, models, schemas
from .scoring import PlayerResult, PointsPolicy, compute_raw_score, linear_points, process_results
from .stats import build_leaderboard, build_statistics
from .storage import LeagueStore

logger = logging.getLogger(__name__)


def _resolve_template(
    store: LeagueStore,
    template_id: int | None,
    game: models.Game,
) -> models.ScoreTemplate | None:
    if template_id is None:
        return None

    template = store.find_template(template_id)
    if template is None:
        raise errors.NotFoundError("Score template not found.")
    if template.game_id != game.id:
        raise errors.ValidationError(f"Score template '{template.name}' does not belong to {game.name}.")
    return template


def _to_result(entry: schemas.PlayerResultInput, template: models.ScoreTemplate | None) -> PlayerResult:
    if entry.score_details is None:
        return PlayerResult(user_id=entry.user_id, raw_score=int(entry.raw_score or 0))

    if template is None:
        raise errors.ValidationError("Score details can only be recorded against a score template.")

    raw_score = compute_raw_score(template.fields, entry.score_details)
    return PlayerResult(
        user_id=entry.user_id,
        raw_score=raw_score,
        score_details=dict(entry.score_details),
    )


def record_session(
    store: LeagueStore,
    payload: schemas.SessionCreate,
    points_policy: PointsPolicy = linear_points,
) -> models.GameSession:
    if not payload.players:
        raise errors.EmptySessionError()

    game = store.find_game(payload.game_id)
    if game is None:
        raise errors.NotFoundError("Game not found.")

    if store.find_group(payload.group_id) is None:
        raise errors.NotFoundError("Group not found.")

    template = _resolve_template(store, payload.template_id, game)

    seen: set[int] = set()
    for entry in payload.players:
        if entry.user_id in seen:
            raise errors.DuplicatePlayerError(entry.user_id)
        seen.add(entry.user_id)
        if store.find_user(entry.user_id) is None:
            raise errors.UserNotFoundError(entry.user_id)

    results = process_results([_to_result(entry, template) for entry in payload.players], points_policy)

    session = store.create_session_with_players(
        game_id=game.id,
        group_id=payload.group_id,
        template_id=template.id if template else None,
        played_at=payload.played_at,
        results=results,
    )
    logger.info(
        "Recorded session %s: %s in group %s with %d players",
        session.id,
        game.name,
        payload.group_id,
        len(results),
    )
    return session


def get_leaderboard(store: LeagueStore, group_id: int) -> list[schemas.LeaderboardEntry]:
    if store.find_group(group_id) is None:
        raise errors.NotFoundError("Group not found.")

    return build_leaderboard(store.find_session_players_by_group(group_id))


def get_user_statistics(store: LeagueStore, user_id: int) -> schemas.UserStatistics:
    user = store.find_user(user_id)
    if user is None:
        raise errors.UserNotFoundError(user_id)

    rows = store.find_session_players_by_user(user_id)
    return build_statistics(schemas.UserRead.model_validate(user), rows)
