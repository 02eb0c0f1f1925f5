from app.models.training import QuizOption, QuizQuestion
from app.schemas.training import QuizAnswerIn
from app.services.quiz import is_answer_correct


def true_false(*flags):
    return QuizQuestion(
        id=1,
        question="Net metering credits exported power",
        question_type="TRUE_FALSE",
        options=[QuizOption(id=i, text=f"Option {i}", is_correct=flag) for i, flag in enumerate(flags, start=10)],
    )


def answer(*selected):
    return QuizAnswerIn(question_id=1, selected_options=list(selected))


def test_true_false_matches_the_correct_option():
    question = true_false(True, False)

    assert is_answer_correct(question, answer(10)) is True
    assert is_answer_correct(question, answer(11)) is False
    assert is_answer_correct(question, answer()) is False


def test_true_false_only_accepts_the_first_correct_option():
    question = true_false(False, True, True)

    assert is_answer_correct(question, answer(11)) is True
    assert is_answer_correct(question, answer(12)) is False


def test_true_false_without_a_correct_option_is_never_correct():
    assert is_answer_correct(true_false(False, False), answer(10)) is False


def test_multiple_choice_needs_the_exact_set():
    question = QuizQuestion(
        id=1,
        question="Which are renewable?",
        question_type="MULTIPLE_CHOICE",
        options=[QuizOption(id=1, is_correct=True), QuizOption(id=2, is_correct=True), QuizOption(id=3, is_correct=False)],
    )

    assert is_answer_correct(question, answer(1, 2)) is True
    assert is_answer_correct(question, answer(1)) is False
    assert is_answer_correct(question, answer(1, 2, 3)) is False
