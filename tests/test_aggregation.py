from datetime import datetime, timezone

from answerly import models
from answerly.crud import crud_answer, crud_question_set
from answerly.schemas import QuestionCreate, QuestionSetUpdate
from answerly.services import aggregation, submission

from conftest import make_answer, make_set, trivia_questions


def test_three_respondents_get_independent_summaries():
    question_set = make_set()
    answers = [
        make_answer(name="Al", answers={"1": "4", "2": "Paris"}, score=2, minutes=1),
        make_answer(name="Bo", answers={"1": "3", "2": "Paris"}, score=1, minutes=5),
        make_answer(owner_id="u7", answers={"1": "3", "2": "Rome"}, score=0, minutes=3),
    ]

    summaries = {s.display_name: s for s in aggregation.summarize(question_set, answers)}

    assert set(summaries) == {"Al", "Bo", "u7"}
    assert summaries["Al"].correct_count == 2
    assert summaries["Bo"].correct_count == 1
    assert summaries["u7"].correct_count == 0
    assert summaries["Bo"].submitted_at == datetime(2026, 1, 1, 0, 5, tzinfo=timezone.utc)
    assert all(s.total_questions == 2 for s in summaries.values())


def test_repeated_submissions_fold_into_one_summary():
    question_set = make_set()
    answers = [
        make_answer(name="Al", answers={"1": "4", "2": "Rome"}, score=1, minutes=10),
        make_answer(name="Al", answers={"1": "4", "2": "Paris"}, score=2, minutes=2),
    ]

    [summary] = aggregation.summarize(question_set, answers)

    assert summary.submissions == 2
    assert summary.correct_count == 3
    assert summary.submitted_at == datetime(2026, 1, 1, 0, 10, tzinfo=timezone.utc)


def test_stored_score_wins_over_live_questions():
    # Die richtige Antwort wurde nach der Abgabe geändert
    question_set = make_set(correct=("3", "Paris"))
    answers = [make_answer(name="Al", answers={"1": "4", "2": "Paris"}, score=2)]

    [summary] = aggregation.summarize(question_set, answers)

    assert summary.correct_count == 2


def test_legacy_answer_without_score_is_rescored():
    question_set = make_set()
    answers = [make_answer(name="Al", answers={"1": "4", "2": "Rome"}, score=None)]

    [summary] = aggregation.summarize(question_set, answers)

    assert summary.correct_count == 1


def test_unnamed_legacy_answers_fold_as_anonymous():
    question_set = make_set()
    answers = [
        models.Answer(owner_id=None, respondent_name=None, answers={}, score=0,
                      created_at=datetime(2026, 1, 1, tzinfo=timezone.utc)),
        models.Answer(owner_id=None, respondent_name=None, answers={}, score=1,
                      created_at=datetime(2026, 1, 2, tzinfo=timezone.utc)),
    ]

    [summary] = aggregation.summarize(question_set, answers)

    assert summary.display_name == "Anonymous"
    assert summary.submissions == 2


def test_survey_summaries_have_no_correct_count():
    question_set = make_set(title="Survey", mode=models.SetMode.SURVEY)
    answers = [make_answer(name="Al", answers={"1": "4", "2": "Paris"})]

    [summary] = aggregation.summarize(question_set, answers)

    assert summary.correct_count is None


def test_filter_summaries_is_case_insensitive_substring():
    question_set = make_set()
    answers = [
        make_answer(name="Alice", score=1),
        make_answer(name="Bob", score=1),
        make_answer(name="MALCOLM", score=1),
    ]
    summaries = aggregation.summarize(question_set, answers)

    names = sorted(s.display_name for s in aggregation.filter_summaries(summaries, "al"))

    assert names == ["Alice", "MALCOLM"]
    assert len(aggregation.filter_summaries(summaries, None)) == 3


def test_breakdown_uses_snapshot_of_correct_answers():
    question_set = make_set(correct=("3", "Paris"))
    answer = make_answer(
        name="Al",
        answers={"1": "4", "2": "Rome"},
        score=1,
        answer_key={"1": "4", "2": "Paris"},
    )

    results = aggregation.breakdown(question_set, answer)

    assert [(r.chosen, r.correct, r.is_correct) for r in results] == [
        ("4", "4", True),
        ("Rome", "Paris", False),
    ]


def test_summaries_to_csv():
    question_set = make_set()
    summaries = aggregation.summarize(
        question_set, [make_answer(name="Al", answers={"1": "4", "2": "Paris"}, score=2)]
    )

    lines = aggregation.summaries_to_csv(summaries).strip().splitlines()

    assert lines[0] == '"respondent","correct_count","total_questions","submitted_at","submissions"'
    assert lines[1].startswith('"Al","2","2","2026-01-01T00:00:00+00:00"')


async def test_regrade_applies_edited_correct_answers(db):
    created = await crud_question_set.create_set(db, "u1", "Trivia", trivia_questions())
    q1, q2 = created.questions
    await submission.submit_answer(
        db, created.slug, {str(q1.id): "3", str(q2.id): "Paris"}, respondent_display_name="Al"
    )

    await crud_question_set.update_set(
        db,
        "u1",
        created.id,
        QuestionSetUpdate(
            questions=[
                QuestionCreate(id=q1.id, text="2+2?", options=["3", "4"], answer="3"),
                QuestionCreate(id=q2.id, text="Capital of France?", options=["Paris", "Rome"], answer="Paris"),
            ]
        ),
    )

    question_set = await crud_question_set.get_set(db, created.id)
    answers = await crud_answer.list_answers_for_set(db, created.id)
    [before] = aggregation.summarize(question_set, answers)
    assert before.correct_count == 1

    assert await aggregation.regrade(db, "u1", created.slug) == 1

    answers = await crud_answer.list_answers_for_set(db, created.id)
    [after] = aggregation.summarize(question_set, answers)
    assert after.correct_count == 2
