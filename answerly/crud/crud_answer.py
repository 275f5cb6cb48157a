import logging
from typing import List, Optional

from sqlalchemy import delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from .. import models
from ..errors import ConflictError, NotFoundError

logger = logging.getLogger(__name__)


async def create_answer(db: AsyncSession, answer: models.Answer) -> models.Answer:
    """
    Insert an answer and commit.

    The (set, respondent) unique constraint is the only duplicate guard that
    holds under concurrent submissions, so its violation becomes ConflictError.
    """
    set_id, respondent_key = answer.question_set_id, answer.respondent_key
    db.add(answer)
    try:
        await db.flush()
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        if "respondent" not in str(exc.orig).lower():
            raise
        logger.info(
            "Duplicate submission for set %s by %s rejected by constraint",
            set_id,
            respondent_key,
        )
        raise ConflictError() from exc
    return answer


async def find_by_respondent(
    db: AsyncSession, set_id: int, respondent_key: str
) -> Optional[models.Answer]:
    result = await db.execute(
        select(models.Answer).where(
            models.Answer.question_set_id == set_id,
            models.Answer.respondent_key == respondent_key,
        )
    )
    return result.scalars().first()


async def list_answers_for_set(db: AsyncSession, set_id: int) -> List[models.Answer]:
    result = await db.execute(
        select(models.Answer)
        .where(models.Answer.question_set_id == set_id)
        .order_by(models.Answer.created_at, models.Answer.id)
    )
    return list(result.scalars().all())


async def get_answer_for_set(
    db: AsyncSession, set_id: int, answer_id: int
) -> models.Answer:
    answer = await db.get(models.Answer, answer_id)
    if answer is None or answer.question_set_id != set_id:
        raise NotFoundError("Answer not found")
    return answer


async def count_answers(db: AsyncSession) -> int:
    result = await db.execute(select(func.count(models.Answer.id)))
    return result.scalar_one()


async def delete_all_answers(db: AsyncSession) -> int:
    result = await db.execute(delete(models.Answer))
    await db.commit()
    return result.rowcount
