import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ... import models, schemas
from ...auth import TokenData, get_current_user, get_optional_user
from ...crud import crud_answer
from ...database import get_db_session
from ...errors import ForbiddenError
from ...services import aggregation, slugs, submission

logger = logging.getLogger(__name__)

router = APIRouter()


async def load_set_for_results(
    db: AsyncSession, slug: str, user: TokenData
) -> models.QuestionSet:
    """Results are visible to the set owner and to admins."""
    question_set = await slugs.resolve(
        db, slug, viewer_id=user.sub, include_private=user.is_admin
    )
    if question_set.owner_id != user.sub and not user.is_admin:
        raise ForbiddenError("Only the owner can view these answers")
    return question_set


@router.get(
    "/{slug}/respondents/availability",
    response_model=schemas.RespondentAvailability,
)
async def check_respondent_name(
    slug: str,
    name: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db_session),
):
    available = await submission.is_respondent_available(db, slug, name)
    return schemas.RespondentAvailability(name=name, available=available)


@router.post(
    "/{slug}/answers",
    response_model=schemas.SubmissionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_answers(
    slug: str,
    answer_in: schemas.AnswerCreate,
    db: AsyncSession = Depends(get_db_session),
    user: Optional[TokenData] = Depends(get_optional_user),
):
    outcome = await submission.submit_answer(
        db,
        slug,
        answer_in.answer_map,
        respondent_display_name=answer_in.respondent_display_name,
        owner_id=user.sub if user else None,
    )
    response = schemas.SubmissionResponse.model_validate(outcome.answer)
    response.result = outcome.score
    return response


@router.get("/{slug}/answers", response_model=schemas.SetAnswersResponse)
async def list_set_answers(
    slug: str,
    db: AsyncSession = Depends(get_db_session),
    user: TokenData = Depends(get_current_user),
):
    question_set = await load_set_for_results(db, slug, user)
    answers = await crud_answer.list_answers_for_set(db, question_set.id)
    return schemas.SetAnswersResponse(
        set=schemas.OwnerQuestionSet.model_validate(question_set),
        answers=[schemas.AnswerRead.model_validate(a) for a in answers],
    )


async def _summaries(db: AsyncSession, question_set: models.QuestionSet, name: Optional[str]):
    answers = await crud_answer.list_answers_for_set(db, question_set.id)
    summaries = aggregation.summarize(question_set, answers)
    summaries = aggregation.filter_summaries(summaries, name)
    return sorted(summaries, key=lambda s: s.display_name.lower())


@router.get("/{slug}/answers/summary", response_model=schemas.SummaryResponse)
async def summarize_set_answers(
    slug: str,
    name: Optional[str] = None,
    db: AsyncSession = Depends(get_db_session),
    user: TokenData = Depends(get_current_user),
):
    question_set = await load_set_for_results(db, slug, user)
    summaries = await _summaries(db, question_set, name)
    return schemas.SummaryResponse(
        set_id=question_set.id,
        title=question_set.title,
        mode=question_set.mode,
        total_respondents=len(summaries),
        summaries=summaries,
    )


@router.get("/{slug}/answers/summary.csv", response_description="CSV of respondent scores")
async def export_set_summary_csv(
    slug: str,
    name: Optional[str] = None,
    db: AsyncSession = Depends(get_db_session),
    user: TokenData = Depends(get_current_user),
):
    question_set = await load_set_for_results(db, slug, user)
    summaries = await _summaries(db, question_set, name)
    logger.info("User %s exported %d summaries of %s", user.sub, len(summaries), slug)
    return StreamingResponse(
        iter([aggregation.summaries_to_csv(summaries)]),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="answers_{slug}.csv"'},
    )


@router.get(
    "/{slug}/answers/{answer_id}/breakdown",
    response_model=schemas.AnswerBreakdownResponse,
)
async def answer_breakdown(
    slug: str,
    answer_id: int,
    db: AsyncSession = Depends(get_db_session),
    user: TokenData = Depends(get_current_user),
):
    question_set = await load_set_for_results(db, slug, user)
    answer = await crud_answer.get_answer_for_set(db, question_set.id, answer_id)
    return schemas.AnswerBreakdownResponse(
        answer_id=answer.id,
        respondent_name=answer.respondent_name,
        submitted_at=answer.created_at,
        results=aggregation.breakdown(question_set, answer),
    )


@router.post("/{slug}/answers/regrade", response_model=schemas.RegradeResponse)
async def regrade_set_answers(
    slug: str,
    db: AsyncSession = Depends(get_db_session),
    user: TokenData = Depends(get_current_user),
):
    regraded = await aggregation.regrade(db, user.sub, slug)
    return schemas.RegradeResponse(regraded=regraded)
