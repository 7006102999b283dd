from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from .. import crud, schemas, serializers
from ..database import get_db

router = APIRouter(tags=["templates"])


@router.post("/", response_model=schemas.ScoreTemplateRead, status_code=status.HTTP_201_CREATED)
def create_template(
    payload: schemas.ScoreTemplateCreate,
    db: Session = Depends(get_db),
) -> schemas.ScoreTemplateRead:
    try:
        template = crud.create_template(db, payload)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    return serializers.template_to_read(template)


@router.get("/{template_id}", response_model=schemas.ScoreTemplateRead)
def get_template(template_id: int, db: Session = Depends(get_db)) -> schemas.ScoreTemplateRead:
    try:
        template = crud.get_template_or_raise(db, template_id)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    return serializers.template_to_read(template)


@router.put("/{template_id}", response_model=schemas.ScoreTemplateRead)
def update_template(
    template_id: int,
    payload: schemas.ScoreTemplateUpdate,
    db: Session = Depends(get_db),
) -> schemas.ScoreTemplateRead:
    try:
        template = crud.update_template(db, template_id, payload)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    return serializers.template_to_read(template)


@router.delete("/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_template(template_id: int, db: Session = Depends(get_db)) -> Response:
    try:
        crud.delete_template(db, template_id)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    return Response(status_code=status.HTTP_204_NO_CONTENT)
