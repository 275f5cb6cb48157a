import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ... import schemas
from ...auth import TokenData, get_current_user, get_optional_user
from ...crud import crud_question_set
from ...database import get_db_session
from ...services import slugs

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=schemas.OwnerQuestionSet,
    status_code=status.HTTP_201_CREATED,
)
async def create_question_set(
    set_in: schemas.QuestionSetCreate,
    db: AsyncSession = Depends(get_db_session),
    user: TokenData = Depends(get_current_user),
):
    question_set = await crud_question_set.create_set(
        db,
        owner_id=user.sub,
        title=set_in.title,
        questions=set_in.questions,
        time_limit_seconds=set_in.time_limit_seconds,
        is_public=set_in.is_public,
        mode=set_in.mode,
    )
    return schemas.OwnerQuestionSet.model_validate(question_set)


@router.get("", response_model=List[schemas.OwnerQuestionSet])
async def list_my_question_sets(
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db_session),
    user: TokenData = Depends(get_current_user),
):
    """Sets of the calling creator, newest first; `search` matches title or question text."""
    question_sets = await crud_question_set.list_sets_by_owner(db, user.sub, search)
    return [schemas.OwnerQuestionSet.model_validate(s) for s in question_sets]


@router.get("/by-id/{set_id}", response_model=schemas.OwnerQuestionSet)
async def get_question_set_by_id(
    set_id: int,
    db: AsyncSession = Depends(get_db_session),
    user: TokenData = Depends(get_current_user),
):
    question_set = await crud_question_set.get_owned_set(db, user.sub, set_id)
    return schemas.OwnerQuestionSet.model_validate(question_set)


@router.put("/{set_id}", response_model=schemas.OwnerQuestionSet)
async def update_question_set(
    set_id: int,
    patch: schemas.QuestionSetUpdate,
    db: AsyncSession = Depends(get_db_session),
    user: TokenData = Depends(get_current_user),
):
    question_set = await crud_question_set.update_set(db, user.sub, set_id, patch)
    return schemas.OwnerQuestionSet.model_validate(question_set)


@router.delete("/{set_id}", response_model=schemas.MessageResponse)
async def delete_question_set(
    set_id: int,
    db: AsyncSession = Depends(get_db_session),
    user: TokenData = Depends(get_current_user),
):
    await crud_question_set.delete_set(db, user.sub, set_id)
    return schemas.MessageResponse(message=f"Question set {set_id} deleted.")


@router.get("/{slug}", response_model=None)
async def read_question_set(
    slug: str,
    db: AsyncSession = Depends(get_db_session),
    user: Optional[TokenData] = Depends(get_optional_user),
):
    """
    Respondent view of a set. Correct answers are stripped unless the caller
    is the set's owner.
    """
    viewer_id = user.sub if user else None
    question_set = await slugs.resolve(db, slug, viewer_id=viewer_id)
    if viewer_id is not None and viewer_id == question_set.owner_id:
        return schemas.OwnerQuestionSet.model_validate(question_set)
    return schemas.PublicQuestionSet.model_validate(question_set)
