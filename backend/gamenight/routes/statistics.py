from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from .. import league, schemas
from ..database import get_db
from ..storage import SqlLeagueStore

router = APIRouter(tags=["statistics"])


@router.get("/{user_id}", response_model=schemas.UserStatistics)
def user_statistics(user_id: int, db: Session = Depends(get_db)) -> schemas.UserStatistics:
    try:
        return league.get_user_statistics(SqlLeagueStore(db), user_id)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
