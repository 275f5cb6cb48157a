import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from .. import models
from ..crud import crud_answer
from ..errors import ConflictError, ValidationError
from ..schemas import ScoreSummary
from . import scoring, slugs
from .identity import Freeform, Identity, Registered

logger = logging.getLogger(__name__)


@dataclass
class SubmissionResult:
    answer: models.Answer
    score: Optional[ScoreSummary]


def respondent_identity(
    owner_id: Optional[str], display_name: Optional[str]
) -> Identity:
    name = (display_name or "").strip()
    if owner_id:
        return Registered(owner_id, name or None)
    if not name:
        raise ValidationError("respondentDisplayName is required for anonymous submissions")
    return Freeform(name)


def check_complete(question_set: models.QuestionSet, answer_map: Mapping[str, Any]) -> None:
    # Zusätzliche Schlüssel werden ignoriert, fehlende nicht
    missing = [
        q.key for q in question_set.questions if answer_map.get(q.key) in (None, "")
    ]
    if missing:
        raise ValidationError(
            f"incomplete submission: no answer for question(s) {', '.join(missing)}"
        )


async def is_respondent_available(db: AsyncSession, slug: str, name: str) -> bool:
    """Advisory pre-check for the respondent page; submit_answer stays authoritative."""
    question_set = await slugs.resolve(db, slug)
    identity = Freeform(name.strip())
    existing = await crud_answer.find_by_respondent(db, question_set.id, identity.key)
    return existing is None


async def submit_answer(
    db: AsyncSession,
    slug: str,
    answer_map: Mapping[str, Any],
    respondent_display_name: Optional[str] = None,
    owner_id: Optional[str] = None,
) -> SubmissionResult:
    question_set = await slugs.resolve(db, slug, viewer_id=owner_id)
    identity = respondent_identity(owner_id, respondent_display_name)
    check_complete(question_set, answer_map)

    # Schneller Pfad; die eigentliche Garantie liefert der Unique-Constraint
    if await crud_answer.find_by_respondent(db, question_set.id, identity.key):
        logger.info("Respondent %s already submitted to %s", identity.key, slug)
        raise ConflictError()

    relevant = {q.key: answer_map[q.key] for q in question_set.questions}
    result = scoring.score_submission(question_set, relevant)
    answer = models.Answer(
        question_set_id=question_set.id,
        owner_id=identity.owner_id,
        respondent_name=identity.name,
        respondent_key=identity.key,
        answers=relevant,
        score=result.correct_count if result else None,
        answer_key=None if result is None else scoring.answer_key_for(question_set.questions),
    )
    await crud_answer.create_answer(db, answer)
    logger.info(
        "Stored answer %s for set %s from %s (score=%s)",
        answer.id,
        slug,
        identity.key,
        answer.score,
    )
    return SubmissionResult(answer=answer, score=result)
