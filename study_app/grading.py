"""
Deterministic grading of submitted answers.

``grade`` dispatches on the question variant and returns ``True``/``False``
for match and multiple-choice questions, or ``None`` when correctness is
not computed (free text, or the submission lacks the payload for the
question's type).
"""
from .errors import InvalidSubmission
from .schemas import FreeTextPayload, MatchPayload, MultipleChoicePayload


def grade_match(match_pairs, match_answers):
    """
    A submitted pair counts as correct when the answer text at
    ``questionIndex`` equals the answer text at ``answerIndex``. Pairs with
    identical answer text are therefore interchangeable, and an empty
    submission is correct.
    """
    for submitted in match_answers:
        for index in (submitted.question_index, submitted.answer_index):
            if index < 0 or index >= len(match_pairs):
                raise InvalidSubmission(f"Match index {index} is out of range")

        expected = match_pairs[submitted.question_index].answer
        given = match_pairs[submitted.answer_index].answer
        if expected != given:
            return False
    return True


def grade_multiple_choice(correct_indices, selected_indices):
    """Exact set equality between the selected and the correct indices."""
    correct = set(correct_indices)
    selected = set(selected_indices)
    return len(correct) == len(selected) and correct.issubset(selected)


def grade(payload, submission):
    if isinstance(payload, MatchPayload):
        if submission.match_answers is None:
            return None
        return grade_match(payload.match_pairs, submission.match_answers)

    if isinstance(payload, MultipleChoicePayload):
        if submission.selected_indices is None:
            return None
        return grade_multiple_choice(payload.correct_indices, submission.selected_indices)

    if isinstance(payload, FreeTextPayload):
        return None

    raise TypeError(f"Unsupported question payload: {type(payload).__name__}")
