import logging

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from . import errors, models, schemas
from .database import commit_or_rollback
from .scoring import validate_template_fields
from .storage import session_query

logger = logging.getLogger(__name__)


def _normalize_text(value: str) -> str:
    return " ".join(value.split())


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


def get_users(db: Session) -> list[models.User]:
    return db.query(models.User).order_by(models.User.name.asc(), models.User.id.asc()).all()


def create_user(db: Session, payload: schemas.UserCreate) -> models.User:
    name = _normalize_text(payload.name)
    if not name:
        raise errors.ValidationError("Name is required.")

    email = payload.email.strip().lower() if payload.email and payload.email.strip() else None
    if email:
        existing = db.query(models.User).filter(func.lower(models.User.email) == email).first()
        if existing:
            raise errors.ConflictError("A user with this email already exists.")

    user = models.User(name=name, email=email, is_guest=payload.is_guest)
    with commit_or_rollback(db):
        db.add(user)
    db.refresh(user)
    return user


def get_user_or_raise(db: Session, user_id: int) -> models.User:
    user = db.get(models.User, user_id)
    if not user:
        raise errors.UserNotFoundError(user_id)
    return user


def delete_user(db: Session, user_id: int) -> None:
    user = get_user_or_raise(db, user_id)

    session_count = db.query(func.count(models.SessionPlayer.id)).filter(models.SessionPlayer.user_id == user_id).scalar()
    if session_count:
        raise errors.ConflictError("Cannot delete user with associated sessions.")

    with commit_or_rollback(db):
        db.delete(user)
    logger.info("Deleted user %s", user_id)


# ---------------------------------------------------------------------------
# Groups and members
# ---------------------------------------------------------------------------


def get_groups(db: Session) -> list[models.Group]:
    return db.query(models.Group).order_by(models.Group.name.asc(), models.Group.id.asc()).all()


def get_group_or_raise(db: Session, group_id: int) -> models.Group:
    group = (
        db.query(models.Group)
        .options(selectinload(models.Group.members).selectinload(models.GroupMember.user))
        .filter(models.Group.id == group_id)
        .first()
    )
    if not group:
        raise errors.NotFoundError("Group not found.")
    return group


def create_group(db: Session, payload: schemas.GroupCreate) -> models.Group:
    name = _normalize_text(payload.name)
    if not name:
        raise errors.ValidationError("Group name cannot be empty.")

    get_user_or_raise(db, payload.creator_id)

    group = models.Group(name=name)
    group.members = [models.GroupMember(user_id=payload.creator_id, role="ADMIN")]
    with commit_or_rollback(db):
        db.add(group)
    db.refresh(group)
    logger.info("Created group %s (%s) for user %s", group.id, group.name, payload.creator_id)
    return group


def list_group_members(db: Session, group_id: int) -> list[models.GroupMember]:
    group = get_group_or_raise(db, group_id)
    return sorted(group.members, key=lambda member: (member.role != "ADMIN", member.user.name, member.user_id))


def add_group_member(db: Session, group_id: int, payload: schemas.GroupMemberCreate) -> models.GroupMember:
    group = get_group_or_raise(db, group_id)
    get_user_or_raise(db, payload.user_id)

    if any(member.user_id == payload.user_id for member in group.members):
        raise errors.ConflictError("User is already a member of this group.")

    member = models.GroupMember(group_id=group.id, user_id=payload.user_id, role=payload.role)
    with commit_or_rollback(db):
        db.add(member)
    db.refresh(member)
    return member


# ---------------------------------------------------------------------------
# Games and score templates
# ---------------------------------------------------------------------------


def get_games(db: Session) -> list[tuple[models.Game, int]]:
    rows = (
        db.query(models.Game, func.count(models.GameSession.id))
        .outerjoin(models.GameSession, models.GameSession.game_id == models.Game.id)
        .group_by(models.Game.id)
        .order_by(models.Game.name.asc())
        .all()
    )
    return [(game, int(count)) for game, count in rows]


def get_game_or_raise(db: Session, game_id: int) -> models.Game:
    game = (
        db.query(models.Game)
        .options(selectinload(models.Game.templates))
        .filter(models.Game.id == game_id)
        .first()
    )
    if not game:
        raise errors.NotFoundError("Game not found.")
    return game


def _ensure_unique_game_name(db: Session, name: str, exclude_id: int | None = None) -> None:
    query = db.query(models.Game).filter(func.lower(models.Game.name) == name.lower())
    if exclude_id is not None:
        query = query.filter(models.Game.id != exclude_id)
    if query.first():
        raise errors.ConflictError("A game with this name already exists.")


def create_game(db: Session, payload: schemas.GameCreate) -> models.Game:
    name = _normalize_text(payload.name)
    if not name:
        raise errors.ValidationError("Game name cannot be empty.")
    _ensure_unique_game_name(db, name)

    game = models.Game(name=name)
    with commit_or_rollback(db):
        db.add(game)
    db.refresh(game)
    return game


def rename_game(db: Session, game_id: int, payload: schemas.GameCreate) -> models.Game:
    game = get_game_or_raise(db, game_id)
    name = _normalize_text(payload.name)
    if not name:
        raise errors.ValidationError("Game name cannot be empty.")
    _ensure_unique_game_name(db, name, exclude_id=game.id)

    with commit_or_rollback(db):
        game.name = name
    return game


def delete_game(db: Session, game_id: int) -> None:
    game = get_game_or_raise(db, game_id)

    session_count = db.query(func.count(models.GameSession.id)).filter(models.GameSession.game_id == game_id).scalar()
    if session_count:
        raise errors.ConflictError("Cannot delete a game that has recorded sessions.")

    with commit_or_rollback(db):
        db.delete(game)
    logger.info("Deleted game %s with its templates", game_id)


def _template_fields(fields: list[schemas.TemplateField]) -> list[dict[str, object]]:
    clean = [field.model_dump() for field in fields]
    validate_template_fields(clean)
    return clean


def list_game_templates(db: Session, game_id: int) -> list[models.ScoreTemplate]:
    game = get_game_or_raise(db, game_id)
    return sorted(game.templates, key=lambda template: template.id)


def get_template_or_raise(db: Session, template_id: int) -> models.ScoreTemplate:
    template = db.get(models.ScoreTemplate, template_id)
    if not template:
        raise errors.NotFoundError("Score template not found.")
    return template


def create_template(db: Session, payload: schemas.ScoreTemplateCreate) -> models.ScoreTemplate:
    get_game_or_raise(db, payload.game_id)
    name = _normalize_text(payload.name)
    if not name:
        raise errors.ValidationError("Template name cannot be empty.")

    template = models.ScoreTemplate(game_id=payload.game_id, name=name, fields=_template_fields(payload.fields))
    with commit_or_rollback(db):
        db.add(template)
    db.refresh(template)
    return template


def update_template(db: Session, template_id: int, payload: schemas.ScoreTemplateUpdate) -> models.ScoreTemplate:
    template = get_template_or_raise(db, template_id)
    name = _normalize_text(payload.name)
    if not name:
        raise errors.ValidationError("Template name cannot be empty.")

    fields = _template_fields(payload.fields)
    with commit_or_rollback(db):
        template.name = name
        template.fields = fields
    return template


def delete_template(db: Session, template_id: int) -> None:
    template = get_template_or_raise(db, template_id)
    with commit_or_rollback(db):
        db.delete(template)


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


def list_sessions(db: Session, group_id: int | None = None) -> list[models.GameSession]:
    query = session_query(db)
    if group_id is not None:
        query = query.filter(models.GameSession.group_id == group_id)
    return query.order_by(models.GameSession.played_at.desc(), models.GameSession.id.desc()).all()


def get_session_or_raise(db: Session, session_id: int) -> models.GameSession:
    session = session_query(db).filter(models.GameSession.id == session_id).first()
    if not session:
        raise errors.NotFoundError("Session not found.")
    return session
