from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from .. import crud, league, schemas, serializers
from ..database import get_db
from ..storage import SqlLeagueStore

router = APIRouter(tags=["sessions"])


@router.get("/", response_model=list[schemas.SessionRead])
def list_sessions(
    group_id: int | None = Query(default=None, ge=1),
    db: Session = Depends(get_db),
) -> list[schemas.SessionRead]:
    sessions = crud.list_sessions(db, group_id=group_id)
    return [serializers.session_to_read(session) for session in sessions]


@router.post("/", response_model=schemas.SessionRead, status_code=status.HTTP_201_CREATED)
def record_session(payload: schemas.SessionCreate, db: Session = Depends(get_db)) -> schemas.SessionRead:
    try:
        session = league.record_session(SqlLeagueStore(db), payload)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    return serializers.session_to_read(session)


@router.get("/{session_id}", response_model=schemas.SessionRead)
def get_session(session_id: int, db: Session = Depends(get_db)) -> schemas.SessionRead:
    try:
        session = crud.get_session_or_raise(db, session_id)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    return serializers.session_to_read(session)
