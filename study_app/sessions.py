"""Study sessions: starting, completing and scoring a play-through of a deck."""
import logging
import math

from . import db
from . import models
from .decks import get_deck
from .errors import NotAuthenticated, NotFound
from .models import Answer, Question, StudySession

log = logging.getLogger(__name__)


def owned_session(caller_id, session_id):
    """Returns the session if ``caller_id`` owns it, otherwise None."""
    if caller_id is None:
        return None
    study_session = db.session.get(StudySession, session_id)
    if study_session is None or study_session.owner_id != caller_id:
        return None
    return study_session


def require_session(caller_id, session_id):
    """Like ``owned_session`` but raises for mutations."""
    if caller_id is None:
        raise NotAuthenticated()
    study_session = owned_session(caller_id, session_id)
    if study_session is None:
        raise NotFound("Session not found")
    return study_session


def create_session(caller_id, deck_id, mode, time_limit_seconds=None):
    """
    Starts a session on one of the caller's decks.

    ``time_limit_seconds`` is stored as given. Exam mode is expected to
    carry one but this is left to the client, as is acting on expiry.
    """
    if caller_id is None:
        raise NotAuthenticated()
    if get_deck(caller_id, deck_id) is None:
        raise NotFound("Deck not found")

    study_session = StudySession(
        deck_id=deck_id,
        owner_id=caller_id,
        mode=mode,
        time_limit_seconds=time_limit_seconds,
        start_time=models.utcnow(),
        completed=False,
    )
    db.session.add(study_session)
    db.session.commit()
    log.info("Started %s session %s on deck %s", mode, study_session.id, deck_id)
    return study_session.id


def get_session(caller_id, session_id):
    return owned_session(caller_id, session_id)


def list_sessions(caller_id):
    if caller_id is None:
        return []
    return StudySession.query.filter_by(owner_id=caller_id)\
        .order_by(StudySession.start_time.desc(), StudySession.id.desc())\
        .all()


def complete_session(caller_id, session_id):
    """Marks the session completed. Calling it again only moves ``end_time``."""
    study_session = require_session(caller_id, session_id)
    study_session.completed = True
    study_session.end_time = models.utcnow()
    db.session.commit()
    log.info("Completed session %s", session_id)


def session_results(caller_id, session_id):
    """
    Scores a session from its stored answers.

    ``total`` counts the questions currently in the deck, so questions added
    or removed after the session started change the percentage.
    """
    study_session = owned_session(caller_id, session_id)
    if study_session is None:
        return None

    answers = Answer.query.filter_by(session_id=session_id).all()
    total = Question.query.filter_by(deck_id=study_session.deck_id).count()
    answered = len(answers)
    correct = sum(1 for answer in answers if answer.is_correct is True)

    percentage = 0
    if answered > 0 and total > 0:
        # Halves round up
        percentage = math.floor(correct / total * 100 + 0.5)

    return {
        "sessionId": study_session.id,
        "answered": answered,
        "correct": correct,
        "total": total,
        "percentage": percentage,
        "completed": study_session.completed,
    }
