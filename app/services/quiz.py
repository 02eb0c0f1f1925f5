from typing import Dict, List, Sequence

from app.models.enums import QuestionType
from app.models.training import QuizQuestion, TrainingModule
from app.schemas.training import GradedAnswer, QuizAnswerIn, QuizResult


def questions_by_id(module: TrainingModule) -> Dict[int, QuizQuestion]:
    return {q.id: q for section in module.sections for q in section.questions}


def is_answer_correct(question: QuizQuestion, answer: QuizAnswerIn) -> bool:
    correct = {opt.id for opt in question.options if opt.is_correct}
    selected = answer.selected_options or []

    if question.question_type == QuestionType.MULTIPLE_CHOICE.value:
        return set(selected) == correct and len(selected) == len(correct)
    if question.question_type == QuestionType.TRUE_FALSE.value:
        # Graded against the first correct option only
        first_correct = next((opt.id for opt in question.options if opt.is_correct), None)
        return len(selected) > 0 and first_correct is not None and selected[0] == first_correct
    # Open-ended answers are not auto-graded
    return True


def grade_quiz(module: TrainingModule, answers: Sequence[QuizAnswerIn]) -> QuizResult:
    """
    Score = correct / submitted * 100. Answers to questions outside the module
    are not graded but still count toward the total.
    """
    questions = questions_by_id(module)
    graded: List[GradedAnswer] = []
    correct_count = 0

    for answer in answers:
        question = questions.get(answer.question_id)
        if question is None:
            continue
        correct = is_answer_correct(question, answer)
        if correct:
            correct_count += 1
        graded.append(GradedAnswer(
            question_id=answer.question_id,
            selected_options=answer.selected_options,
            text_answer=answer.text_answer,
            is_correct=correct,
        ))

    total = len(answers)
    score = (correct_count / total) * 100 if total > 0 else 0.0
    return QuizResult(
        score=score,
        correct_answers=correct_count,
        total_questions=total,
        answers=graded,
    )
