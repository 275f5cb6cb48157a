"""
Folding of raw answers into per-respondent summaries and drill-down views.

Stored scores are authoritative: editing a set's correct answers after people
submitted does not change what they scored until the owner explicitly asks
for a re-grade.
"""

import csv
import io
import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from .. import models
from ..crud import crud_answer
from ..errors import ForbiddenError
from ..schemas import QuestionResult, RespondentSummary
from . import scoring, slugs
from .identity import identity_of

logger = logging.getLogger(__name__)

CSV_HEADERS = ["respondent", "correct_count", "total_questions", "submitted_at", "submissions"]


def _as_utc(value: datetime) -> datetime:
    # SQLite liefert naive Zeitstempel zurück
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def correct_count_for(
    question_set: models.QuestionSet, answer: models.Answer
) -> Optional[int]:
    if question_set.is_survey:
        return None
    if answer.score is not None:
        return answer.score
    # Altbestand ohne gespeicherten Score
    return scoring.score(question_set.questions, answer.answers or {}).correct_count


def summarize(
    question_set: models.QuestionSet, answers: Iterable[models.Answer]
) -> List[RespondentSummary]:
    """One summary per respondent identity; unordered."""
    total_questions = len(question_set.questions)
    folded: Dict[str, RespondentSummary] = {}

    for answer in answers:
        identity = identity_of(answer.owner_id, answer.respondent_name)
        correct = correct_count_for(question_set, answer)
        summary = folded.get(identity.key)
        if summary is None:
            folded[identity.key] = RespondentSummary(
                respondent=identity.key,
                display_name=identity.name,
                total_questions=total_questions,
                correct_count=correct,
                submitted_at=_as_utc(answer.created_at),
                submissions=1,
            )
            continue

        # Mehrere Abgaben pro Person (Altdaten vor dem Constraint) werden aufsummiert
        summary.submissions += 1
        if correct is not None:
            summary.correct_count = (summary.correct_count or 0) + correct
        submitted_at = _as_utc(answer.created_at)
        if submitted_at and submitted_at > summary.submitted_at:
            summary.submitted_at = submitted_at

    return list(folded.values())


def filter_summaries(
    summaries: Sequence[RespondentSummary], name: Optional[str]
) -> List[RespondentSummary]:
    if not name:
        return list(summaries)
    needle = name.lower()
    return [s for s in summaries if needle in s.display_name.lower()]


def breakdown(
    question_set: models.QuestionSet, answer: models.Answer
) -> List[QuestionResult]:
    return scoring.grade(
        question_set.questions, answer.answers or {}, answer_key=answer.answer_key
    )


def summaries_to_csv(summaries: Sequence[RespondentSummary]) -> str:
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=CSV_HEADERS, quoting=csv.QUOTE_ALL)
    writer.writeheader()
    for summary in summaries:
        writer.writerow(
            {
                "respondent": summary.display_name,
                "correct_count": "" if summary.correct_count is None else summary.correct_count,
                "total_questions": summary.total_questions,
                "submitted_at": summary.submitted_at.isoformat(),
                "submissions": summary.submissions,
            }
        )
    return output.getvalue()


async def regrade(db: AsyncSession, owner_id: str, slug: str) -> int:
    """Re-score every stored answer of a set against its current questions."""
    question_set = await slugs.resolve(db, slug, viewer_id=owner_id)
    if question_set.owner_id != owner_id:
        raise ForbiddenError("Only the owner can re-grade this question set")

    answers = await crud_answer.list_answers_for_set(db, question_set.id)
    key = None if question_set.is_survey else scoring.answer_key_for(question_set.questions)
    for answer in answers:
        result = scoring.score_submission(question_set, answer.answers or {})
        answer.score = result.correct_count if result else None
        answer.answer_key = key
    await db.commit()
    logger.info("Owner %s re-graded %d answers of set %s", owner_id, len(answers), slug)
    return len(answers)
