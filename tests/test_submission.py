import asyncio

import pytest

from answerly.crud import crud_answer, crud_question_set
from answerly.errors import ConflictError, NotFoundError, ValidationError
from answerly.services import submission

from conftest import trivia_questions


async def create_trivia(db, title="Trivia"):
    question_set = await crud_question_set.create_set(db, "u1", title, trivia_questions())
    q1, q2 = question_set.questions
    return question_set, str(q1.id), str(q2.id)


async def test_anonymous_submission_is_scored(db):
    question_set, q1, q2 = await create_trivia(db)

    outcome = await submission.submit_answer(
        db, question_set.slug, {q1: "4", q2: "Rome"}, respondent_display_name="Al"
    )

    assert outcome.score.correct_count == 1
    assert outcome.score.total_questions == 2
    assert outcome.score.percentage == 50.0
    assert outcome.answer.score == 1
    assert outcome.answer.respondent_name == "Al"
    assert outcome.answer.owner_id is None
    assert outcome.answer.answer_key == {q1: "4", q2: "Paris"}


async def test_unknown_slug(db):
    with pytest.raises(NotFoundError):
        await submission.submit_answer(db, "nope", {}, respondent_display_name="Al")


@pytest.mark.parametrize("name", [None, "", "   "])
async def test_anonymous_submission_needs_a_name(db, name):
    question_set, q1, q2 = await create_trivia(db)
    with pytest.raises(ValidationError):
        await submission.submit_answer(
            db, question_set.slug, {q1: "4", q2: "Paris"}, respondent_display_name=name
        )


async def test_missing_question_is_rejected(db):
    question_set, q1, _ = await create_trivia(db)
    with pytest.raises(ValidationError, match="incomplete submission"):
        await submission.submit_answer(
            db, question_set.slug, {q1: "4"}, respondent_display_name="Al"
        )


async def test_extra_keys_are_ignored(db):
    question_set, q1, q2 = await create_trivia(db)

    outcome = await submission.submit_answer(
        db, question_set.slug, {q1: "4", q2: "Paris", "999": "x"}, respondent_display_name="Al"
    )

    assert outcome.score.correct_count == 2
    assert "999" not in outcome.answer.answers


async def test_second_submission_with_same_name_conflicts(db):
    question_set, q1, q2 = await create_trivia(db)
    slug = question_set.slug
    await submission.submit_answer(db, slug, {q1: "4", q2: "Paris"}, respondent_display_name="Al")

    with pytest.raises(ConflictError):
        await submission.submit_answer(db, slug, {q1: "3", q2: "Rome"}, respondent_display_name="Al")

    # Ein anderer Name ist weiterhin erlaubt
    await submission.submit_answer(db, slug, {q1: "3", q2: "Rome"}, respondent_display_name="Bo")


async def test_registered_respondent_is_keyed_by_owner_id(db):
    question_set, q1, q2 = await create_trivia(db)
    slug = question_set.slug

    outcome = await submission.submit_answer(db, slug, {q1: "4", q2: "Paris"}, owner_id="u9")
    assert outcome.answer.respondent_key == "user:u9"

    with pytest.raises(ConflictError):
        await submission.submit_answer(
            db, slug, {q1: "4", q2: "Paris"}, respondent_display_name="Someone else", owner_id="u9"
        )


async def test_survey_submissions_never_store_a_score(db):
    question_set, q1, q2 = await create_trivia(db, title="Survey")

    outcome = await submission.submit_answer(
        db, question_set.slug, {q1: "4", q2: "Paris"}, respondent_display_name="Al"
    )

    assert outcome.score is None
    assert outcome.answer.score is None
    assert outcome.answer.answer_key is None


async def test_respondent_availability(db):
    question_set, q1, q2 = await create_trivia(db)
    slug = question_set.slug
    assert await submission.is_respondent_available(db, slug, "Al")

    await submission.submit_answer(db, slug, {q1: "4", q2: "Paris"}, respondent_display_name="Al")

    assert not await submission.is_respondent_available(db, slug, "Al")
    assert await submission.is_respondent_available(db, slug, "al")


async def test_concurrent_duplicate_submissions_store_exactly_one(db, session_factory):
    question_set, q1, q2 = await create_trivia(db)
    slug, set_id = question_set.slug, question_set.id

    async def attempt():
        async with session_factory() as session:
            return await submission.submit_answer(
                session, slug, {q1: "4", q2: "Paris"}, respondent_display_name="Al"
            )

    results = await asyncio.gather(attempt(), attempt(), return_exceptions=True)

    successes = [r for r in results if isinstance(r, submission.SubmissionResult)]
    conflicts = [r for r in results if isinstance(r, ConflictError)]
    assert len(successes) == 1, results
    assert len(conflicts) == 1, results

    async with session_factory() as session:
        assert len(await crud_answer.list_answers_for_set(session, set_id)) == 1
