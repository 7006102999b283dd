from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from .. import crud, errors, schemas, serializers
from ..database import get_db

router = APIRouter(tags=["games"])


@router.get("/", response_model=list[schemas.GameRead])
def list_games(db: Session = Depends(get_db)) -> list[schemas.GameRead]:
    return [serializers.game_to_read(game, count) for game, count in crud.get_games(db)]


@router.post("/", response_model=schemas.GameRead, status_code=status.HTTP_201_CREATED)
def create_game(game: schemas.GameCreate, db: Session = Depends(get_db)) -> schemas.GameRead:
    try:
        created = crud.create_game(db, game)
    except errors.ConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    return serializers.game_to_read(created)


@router.get("/{game_id}", response_model=schemas.GameDetail)
def get_game(game_id: int, db: Session = Depends(get_db)) -> schemas.GameDetail:
    try:
        game = crud.get_game_or_raise(db, game_id)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    return serializers.game_to_detail(game)


@router.patch("/{game_id}", response_model=schemas.GameDetail)
def rename_game(game_id: int, payload: schemas.GameCreate, db: Session = Depends(get_db)) -> schemas.GameDetail:
    try:
        game = crud.rename_game(db, game_id, payload)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except errors.ConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    return serializers.game_to_detail(game)


@router.delete("/{game_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_game(game_id: int, db: Session = Depends(get_db)) -> Response:
    try:
        crud.delete_game(db, game_id)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except errors.ConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{game_id}/templates", response_model=list[schemas.ScoreTemplateRead])
def list_game_templates(game_id: int, db: Session = Depends(get_db)) -> list[schemas.ScoreTemplateRead]:
    try:
        templates = crud.list_game_templates(db, game_id)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    return [serializers.template_to_read(template) for template in templates]
