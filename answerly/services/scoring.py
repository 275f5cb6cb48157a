"""Exact-match grading of an answer map against a set's questions."""

from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from .. import models
from ..schemas import QuestionResult, ScoreSummary

AnswerMap = Union[Mapping[str, Any], Sequence[Any]]

SURVEY_TITLE = "survey"


def mode_for_title(
    title: str, requested: Optional[models.SetMode] = None
) -> models.SetMode:
    """Mode of a set. A title of "survey" always means survey, whatever was requested."""
    if (title or "").strip().lower() == SURVEY_TITLE:
        return models.SetMode.SURVEY
    return requested or models.SetMode.QUIZ


def chosen_option(answer_map: AnswerMap, question: models.Question, index: int) -> Any:
    # Ältere Abgaben speichern die Antworten als Liste in Fragenreihenfolge
    if isinstance(answer_map, (list, tuple)):
        return answer_map[index] if index < len(answer_map) else None
    return answer_map.get(question.key)


def answer_key_for(questions: Sequence[models.Question]) -> Dict[str, str]:
    return {q.key: q.correct_answer or "" for q in questions}


def grade(
    questions: Sequence[models.Question],
    answer_map: AnswerMap,
    answer_key: Optional[Mapping[str, str]] = None,
) -> List[QuestionResult]:
    results = []
    for index, question in enumerate(questions):
        chosen = chosen_option(answer_map, question, index)
        if answer_key is not None and question.key in answer_key:
            correct = answer_key[question.key]
        else:
            correct = question.correct_answer or ""
        results.append(
            QuestionResult(
                question_id=question.id,
                text=question.text,
                chosen=chosen,
                correct=correct,
                # Kein Normalisieren: "4" != " 4" != 4
                is_correct=isinstance(chosen, str) and chosen == correct,
            )
        )
    return results


def summarize_results(results: Sequence[QuestionResult]) -> ScoreSummary:
    total = len(results)
    correct_count = sum(1 for r in results if r.is_correct)
    percentage = round(correct_count / total * 100, 2) if total else 0.0
    return ScoreSummary(
        correct_count=correct_count, total_questions=total, percentage=percentage
    )


def score(questions: Sequence[models.Question], answer_map: AnswerMap) -> ScoreSummary:
    return summarize_results(grade(questions, answer_map))


def score_submission(
    question_set: models.QuestionSet, answer_map: AnswerMap
) -> Optional[ScoreSummary]:
    """Score for a fresh submission, or None for survey sets."""
    if question_set.is_survey:
        return None
    return score(question_set.questions, answer_map)
