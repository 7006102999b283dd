from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, CheckConstraint, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from .database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=True)
    # Guests have no login and only exist to be attached to sessions.
    is_guest = Column(Boolean, default=False, nullable=False)

    memberships = relationship("GroupMember", back_populates="user", cascade="all, delete-orphan")
    session_results = relationship("SessionPlayer", back_populates="user")


class Group(Base):
    __tablename__ = "groups"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)

    members = relationship("GroupMember", back_populates="group", cascade="all, delete-orphan")
    sessions = relationship("GameSession", back_populates="group")


class GroupMember(Base):
    __tablename__ = "group_members"

    id = Column(Integer, primary_key=True, index=True)
    group_id = Column(Integer, ForeignKey("groups.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    role = Column(String(16), default="MEMBER", nullable=False)

    group = relationship("Group", back_populates="members")
    user = relationship("User", back_populates="memberships")

    __table_args__ = (
        UniqueConstraint("group_id", "user_id", name="uq_group_member"),
        CheckConstraint("role in ('ADMIN', 'MEMBER')", name="ck_group_member_role_valid"),
    )


class Game(Base):
    __tablename__ = "games"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False, index=True)

    templates = relationship("ScoreTemplate", back_populates="game", cascade="all, delete-orphan")
    sessions = relationship("GameSession", back_populates="game")


class ScoreTemplate(Base):
    __tablename__ = "score_templates"

    id = Column(Integer, primary_key=True, index=True)
    game_id = Column(Integer, ForeignKey("games.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)

    # Ordered list of {"key", "label", "type", "multiplier"} objects.
    fields = Column(JSON, nullable=False, default=list)

    game = relationship("Game", back_populates="templates")


class GameSession(Base):
    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True, index=True)
    game_id = Column(Integer, ForeignKey("games.id"), nullable=False, index=True)
    group_id = Column(Integer, ForeignKey("groups.id"), nullable=False, index=True)
    template_id = Column(Integer, ForeignKey("score_templates.id", ondelete="SET NULL"), nullable=True)
    played_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)

    game = relationship("Game", back_populates="sessions")
    group = relationship("Group", back_populates="sessions")
    template = relationship("ScoreTemplate")
    players = relationship(
        "SessionPlayer",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="SessionPlayer.id",
    )


class SessionPlayer(Base):
    __tablename__ = "session_players"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(Integer, ForeignKey("sessions.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    raw_score = Column(Integer, default=0, nullable=False)
    placement = Column(Integer, nullable=False)
    points_awarded = Column(Integer, default=0, nullable=False)

    # Field key -> value, only when the session used a template. Keys are the
    # ones in effect at recording time; later template edits do not touch them.
    score_details = Column(JSON, nullable=True)

    session = relationship("GameSession", back_populates="players")
    user = relationship("User", back_populates="session_results")

    __table_args__ = (
        UniqueConstraint("session_id", "user_id", name="uq_session_player"),
        CheckConstraint("placement >= 1", name="ck_session_player_placement_positive"),
        CheckConstraint("points_awarded >= 0", name="ck_session_player_points_nonnegative"),
    )
