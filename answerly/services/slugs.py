import logging
import secrets
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from .. import models
from ..config import SLUG_LENGTH
from ..errors import NotFoundError

logger = logging.getLogger(__name__)

# Ohne 0/O, 1/l/I, damit geteilte Links abgetippt werden können
SLUG_ALPHABET = "23456789abcdefghijkmnpqrstuvwxyzABCDEFGHJKLMNPQRSTUVWXYZ"


def generate_slug(length: int = SLUG_LENGTH) -> str:
    return "".join(secrets.choice(SLUG_ALPHABET) for _ in range(length))


def is_slug_collision(exc: IntegrityError) -> bool:
    # SQLite meldet "question_sets.slug", PostgreSQL den Constraint-Namen
    return "slug" in str(exc.orig).lower()


async def resolve(
    db: AsyncSession,
    slug: str,
    viewer_id: Optional[str] = None,
    include_private: bool = False,
) -> models.QuestionSet:
    """
    Look up a set by its public slug.

    Private sets only resolve for their owner (or with include_private, for
    admin views); everybody else gets the same NotFoundError as for an
    unknown slug.
    """
    result = await db.execute(
        select(models.QuestionSet).where(models.QuestionSet.slug == slug)
    )
    question_set = result.scalar_one_or_none()
    if question_set is None:
        raise NotFoundError()
    if (
        not include_private
        and not question_set.is_public
        and question_set.owner_id != viewer_id
    ):
        logger.info("Private set %s requested by non-owner", slug)
        raise NotFoundError()
    return question_set
