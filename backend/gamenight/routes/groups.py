from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from .. import crud, errors, league, schemas, serializers
from ..database import get_db
from ..storage import SqlLeagueStore

router = APIRouter(tags=["groups"])


@router.get("/", response_model=list[schemas.GroupRead])
def list_groups(db: Session = Depends(get_db)) -> list[schemas.GroupRead]:
    return crud.get_groups(db)


@router.post("/", response_model=schemas.GroupRead, status_code=status.HTTP_201_CREATED)
def create_group(group: schemas.GroupCreate, db: Session = Depends(get_db)) -> schemas.GroupRead:
    try:
        return crud.create_group(db, group)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.get("/{group_id}/members", response_model=list[schemas.GroupMemberRead])
def list_members(group_id: int, db: Session = Depends(get_db)) -> list[schemas.GroupMemberRead]:
    try:
        members = crud.list_group_members(db, group_id)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    return [serializers.member_to_read(member) for member in members]


@router.post(
    "/{group_id}/members",
    response_model=schemas.GroupMemberRead,
    status_code=status.HTTP_201_CREATED,
)
def add_member(
    group_id: int,
    payload: schemas.GroupMemberCreate,
    db: Session = Depends(get_db),
) -> schemas.GroupMemberRead:
    try:
        member = crud.add_group_member(db, group_id, payload)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except errors.ConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    return serializers.member_to_read(member)


@router.get("/{group_id}/leaderboard", response_model=list[schemas.LeaderboardEntry])
def leaderboard(group_id: int, db: Session = Depends(get_db)) -> list[schemas.LeaderboardEntry]:
    try:
        return league.get_leaderboard(SqlLeagueStore(db), group_id)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
