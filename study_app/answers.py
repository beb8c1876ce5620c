"""
Answer submission and grading.

An answer is keyed by ``(session_id, question_id)``: resubmitting replaces
the stored payload and correctness instead of adding a row. Free-text
feedback is written in a second, separate step (``update_feedback``) so
that the slow evaluation call never runs inside the submission's
transaction.
"""
import logging

from sqlalchemy.exc import IntegrityError

from . import db
from . import models
from .decks import get_question
from .errors import NotAuthenticated, NotFound
from .grading import grade
from .models import Answer
from .sessions import owned_session, require_session

log = logging.getLogger(__name__)


def _find_answer(session_id, question_id):
    return Answer.query.filter_by(session_id=session_id, question_id=question_id).first()


def _write_submission(answer, submission, is_correct):
    # All three payload fields are replaced, never merged with the previous submission
    if submission.match_answers is not None:
        answer.match_answers = [pair.model_dump(by_alias=True) for pair in submission.match_answers]
    else:
        answer.match_answers = None
    answer.selected_indices = list(submission.selected_indices) if submission.selected_indices is not None else None
    answer.text_answer = submission.text_answer
    answer.is_correct = is_correct
    answer.answered_at = models.utcnow()


def submit_answer(caller_id, session_id, submission):
    """
    Records the caller's answer to one question of a session and returns
    the answer's id. Correctness is computed here for match and
    multiple-choice questions; ``llm_feedback`` is left untouched.
    """
    require_session(caller_id, session_id)

    question = get_question(submission.question_id)
    if question is None:
        raise NotFound("Question not found")

    is_correct = grade(question.payload, submission)

    # Ids are read before committing so the answer row is not reloaded into this session
    existing = _find_answer(session_id, submission.question_id)
    if existing is not None:
        answer_id = existing.id
        _write_submission(existing, submission, is_correct)
        db.session.commit()
        return answer_id

    answer = Answer(session_id=session_id, question_id=submission.question_id)
    _write_submission(answer, submission, is_correct)
    db.session.add(answer)
    try:
        db.session.flush()
        answer_id = answer.id
        db.session.commit()
    except IntegrityError:
        # Another submission for the same question won the insert; update that row instead
        db.session.rollback()
        log.warning("Concurrent answer insert for session %s question %s", session_id, submission.question_id)
        existing = _find_answer(session_id, submission.question_id)
        if existing is None:
            raise
        answer_id = existing.id
        _write_submission(existing, submission, is_correct)
        db.session.commit()

    return answer_id


def get_answers(caller_id, session_id):
    if owned_session(caller_id, session_id) is None:
        return []
    return Answer.query.filter_by(session_id=session_id).order_by(Answer.id).all()


def owned_answer(caller_id, answer_id):
    if caller_id is None:
        raise NotAuthenticated()
    answer = db.session.get(Answer, answer_id)
    if answer is None or owned_session(caller_id, answer.session_id) is None:
        raise NotFound("Answer not found")
    return answer


def update_feedback(answer_id, feedback, evaluated_text=None):
    """
    Internal write path: sets only ``llm_feedback``, even on completed sessions.

    When ``evaluated_text`` is given the write is skipped (and ``False``
    returned) if the stored text answer has since been replaced.
    """
    answer = db.session.get(Answer, answer_id)
    if answer is None:
        raise NotFound("Answer not found")
    if evaluated_text is not None and answer.text_answer != evaluated_text:
        log.info("Discarding feedback for answer %s: text answer was resubmitted", answer_id)
        db.session.commit()
        return False
    answer.llm_feedback = feedback
    db.session.commit()
    return True


def run_evaluation(answer_id, question, answer_text, evaluator, only_if_current=False):
    """
    Calls the evaluator and stores its feedback. Errors propagate; nothing is
    written on failure. Background jobs pass ``only_if_current`` so a slow
    job for an older text answer cannot overwrite a newer one's feedback.
    """
    feedback = evaluator(question, answer_text)
    update_feedback(answer_id, feedback, evaluated_text=answer_text if only_if_current else None)
    return feedback


def evaluate_free_text(caller_id, answer_id, question, answer_text, evaluator):
    """Evaluates one of the caller's answers now and returns the feedback."""
    owned_answer(caller_id, answer_id)
    # End the read transaction before the external call
    db.session.commit()
    return run_evaluation(answer_id, question, answer_text, evaluator)
