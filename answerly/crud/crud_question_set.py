import logging
from typing import Callable, List, Optional, Sequence

from sqlalchemy import delete, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from .. import models
from ..config import DEFAULT_TIME_LIMIT_SECONDS, SLUG_MAX_ATTEMPTS
from ..errors import ForbiddenError, NotFoundError, SlugExhaustionError, ValidationError
from ..schemas import QuestionCreate, QuestionSetUpdate
from ..services.scoring import mode_for_title
from ..services.slugs import generate_slug, is_slug_collision

logger = logging.getLogger(__name__)


def _check_questions(questions: Sequence[QuestionCreate]) -> None:
    if not questions:
        raise ValidationError("A question set needs at least one question")
    for position, question in enumerate(questions, start=1):
        if not question.text or not question.text.strip():
            raise ValidationError(f"Question {position} has no text")
        if not question.options:
            raise ValidationError(f"Question {position} has no options")
        if question.correct_answer and question.correct_answer not in question.options:
            logger.warning(
                "Question %s: correct answer %r is not one of its options",
                position,
                question.correct_answer,
            )


def _build_question(question: QuestionCreate, position: int) -> models.Question:
    return models.Question(
        position=position,
        text=question.text.strip(),
        options=list(question.options),
        correct_answer=question.correct_answer or "",
    )


async def get_set(db: AsyncSession, set_id: int) -> models.QuestionSet:
    question_set = await db.get(models.QuestionSet, set_id)
    if question_set is None:
        raise NotFoundError()
    return question_set


async def get_owned_set(
    db: AsyncSession, owner_id: str, set_id: int
) -> models.QuestionSet:
    question_set = await get_set(db, set_id)
    if question_set.owner_id != owner_id:
        raise ForbiddenError("Only the owner can change this question set")
    return question_set


async def create_set(
    db: AsyncSession,
    owner_id: str,
    title: str,
    questions: Sequence[QuestionCreate],
    time_limit_seconds: int = DEFAULT_TIME_LIMIT_SECONDS,
    is_public: bool = True,
    mode: Optional[models.SetMode] = None,
    slug_factory: Callable[[], str] = generate_slug,
) -> models.QuestionSet:
    """
    Persist a new set under a freshly generated slug.

    Slug uniqueness is left to the unique index: on a collision the insert is
    rolled back and retried with a new slug, up to SLUG_MAX_ATTEMPTS times.
    """
    if not title or not title.strip():
        raise ValidationError("A question set needs a title")
    _check_questions(questions)
    resolved_mode = mode_for_title(title, mode)

    for attempt in range(1, SLUG_MAX_ATTEMPTS + 1):
        question_set = models.QuestionSet(
            owner_id=owner_id,
            title=title.strip(),
            mode=resolved_mode,
            time_limit_seconds=time_limit_seconds,
            is_public=is_public,
            slug=slug_factory(),
            questions=[_build_question(q, i) for i, q in enumerate(questions)],
        )
        db.add(question_set)
        try:
            await db.flush()
        except IntegrityError as exc:
            await db.rollback()
            if not is_slug_collision(exc):
                raise
            logger.warning(
                "Slug collision on %s (attempt %d/%d)",
                question_set.slug,
                attempt,
                SLUG_MAX_ATTEMPTS,
            )
            continue
        await db.commit()
        logger.info(
            "Owner %s created question set %s (%s, %d questions)",
            owner_id,
            question_set.slug,
            resolved_mode.value,
            len(question_set.questions),
        )
        return question_set

    raise SlugExhaustionError()


async def update_set(
    db: AsyncSession, owner_id: str, set_id: int, patch: QuestionSetUpdate
) -> models.QuestionSet:
    question_set = await get_owned_set(db, owner_id, set_id)

    if patch.title is not None:
        if not patch.title.strip():
            raise ValidationError("A question set needs a title")
        question_set.title = patch.title.strip()
    if patch.time_limit_seconds is not None:
        question_set.time_limit_seconds = patch.time_limit_seconds
    if patch.is_public is not None:
        question_set.is_public = patch.is_public
    if patch.title is not None or patch.mode is not None:
        question_set.mode = mode_for_title(question_set.title, patch.mode or question_set.mode)

    if patch.questions is not None:
        _check_questions(patch.questions)
        existing = {q.id: q for q in question_set.questions}
        updated: List[models.Question] = []
        for position, incoming in enumerate(patch.questions):
            current = existing.pop(incoming.id, None) if incoming.id is not None else None
            if current is None:
                updated.append(_build_question(incoming, position))
                continue
            # Gleiche ID: Frage wird an Ort und Stelle aktualisiert
            current.position = position
            current.text = incoming.text.strip()
            current.options = list(incoming.options)
            current.correct_answer = incoming.correct_answer or ""
            updated.append(current)
        if existing:
            logger.info(
                "Removing %d questions from set %s", len(existing), question_set.slug
            )
        question_set.questions = updated

    question_set.updated_at = models.utcnow()
    await db.flush()
    await db.commit()
    await db.refresh(question_set, attribute_names=["questions"])
    logger.info("Owner %s updated question set %s", owner_id, question_set.slug)
    return question_set


async def delete_set(db: AsyncSession, owner_id: str, set_id: int) -> None:
    question_set = await get_owned_set(db, owner_id, set_id)
    result = await db.execute(
        delete(models.Answer).where(models.Answer.question_set_id == set_id)
    )
    await db.delete(question_set)
    await db.commit()
    logger.info(
        "Owner %s deleted question set %s with %d answers",
        owner_id,
        question_set.slug,
        result.rowcount,
    )


async def list_sets_by_owner(
    db: AsyncSession, owner_id: str, search: Optional[str] = None
) -> List[models.QuestionSet]:
    stmt = select(models.QuestionSet).where(models.QuestionSet.owner_id == owner_id)
    if search and search.strip():
        pattern = f"%{search.strip().lower()}%"
        matching_questions = select(models.Question.question_set_id).where(
            func.lower(models.Question.text).like(pattern)
        )
        stmt = stmt.where(
            or_(
                func.lower(models.QuestionSet.title).like(pattern),
                models.QuestionSet.id.in_(matching_questions),
            )
        )
    result = await db.execute(
        stmt.order_by(models.QuestionSet.created_at.desc(), models.QuestionSet.id.desc())
    )
    return list(result.scalars().all())


async def count_sets(db: AsyncSession) -> int:
    result = await db.execute(select(func.count(models.QuestionSet.id)))
    return result.scalar_one()


async def count_owners(db: AsyncSession) -> int:
    result = await db.execute(
        select(func.count(func.distinct(models.QuestionSet.owner_id)))
    )
    return result.scalar_one()
