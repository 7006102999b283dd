from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ORMBaseModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


GroupRole = Literal["ADMIN", "MEMBER"]


class UserCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: str | None = Field(default=None, max_length=255)
    is_guest: bool = False


class UserRead(ORMBaseModel):
    id: int
    name: str
    email: str | None = None
    is_guest: bool = False


class GroupCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    creator_id: int = Field(gt=0)


class GroupRead(ORMBaseModel):
    id: int
    name: str


class GroupMemberCreate(BaseModel):
    user_id: int = Field(gt=0)
    role: GroupRole = "MEMBER"


class GroupMemberRead(BaseModel):
    user_id: int
    name: str
    email: str | None = None
    is_guest: bool = False
    role: GroupRole


class TemplateField(BaseModel):
    key: str = Field(min_length=1, max_length=64)
    label: str = Field(min_length=1, max_length=100)
    type: Literal["number"] = "number"
    multiplier: int = 1


class ScoreTemplateCreate(BaseModel):
    game_id: int = Field(gt=0)
    name: str = Field(min_length=1, max_length=100)
    fields: list[TemplateField]


class ScoreTemplateUpdate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    fields: list[TemplateField]


class ScoreTemplateRead(ORMBaseModel):
    id: int
    game_id: int
    name: str
    fields: list[TemplateField]


class GameCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)


class GameRead(BaseModel):
    id: int
    name: str
    session_count: int = 0


class GameDetail(BaseModel):
    id: int
    name: str
    templates: list[ScoreTemplateRead] = Field(default_factory=list)


class PlayerResultInput(BaseModel):
    user_id: int = Field(gt=0)
    raw_score: int | None = None
    score_details: dict[str, int] | None = None

    @model_validator(mode="after")
    def require_score(self) -> "PlayerResultInput":
        if self.raw_score is None and self.score_details is None:
            raise ValueError("Each player needs either raw_score or score_details.")
        return self


class SessionCreate(BaseModel):
    game_id: int = Field(gt=0)
    group_id: int = Field(gt=0)
    template_id: int | None = Field(default=None, gt=0)
    played_at: datetime | None = None
    players: list[PlayerResultInput] = Field(default_factory=list)


class SessionPlayerRead(BaseModel):
    user_id: int
    user_name: str
    raw_score: int
    placement: int
    points_awarded: int
    score_details: dict[str, int] | None = None


class SessionRead(BaseModel):
    id: int
    game_id: int
    game_name: str
    group_id: int
    template_id: int | None = None
    played_at: datetime
    players: list[SessionPlayerRead] = Field(default_factory=list)


class LeaderboardEntry(BaseModel):
    user_id: int
    name: str
    total_league_points: int
    games_played: int
    average_placement: float


class PlacementSummary(BaseModel):
    wins: int = 0
    second: int = 0
    third: int = 0
    last: int = 0


class PieSlice(BaseModel):
    name: Literal["1st", "2nd", "3rd", "4th+"]
    value: int


class GameStat(BaseModel):
    name: str
    played: int
    wins: int
    win_rate: int


class UserStatistics(BaseModel):
    user: UserRead
    total_games: int
    summary: PlacementSummary
    pie_data: list[PieSlice] = Field(default_factory=list)
    games_data: list[GameStat] = Field(default_factory=list)
