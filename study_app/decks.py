"""Deck and question storage, scoped to the calling user."""
import logging

from sqlalchemy import func

from . import db
from .errors import InvalidSubmission, NotAuthenticated, NotFound
from .models import Deck, Question

log = logging.getLogger(__name__)


def _require_caller(caller_id):
    if caller_id is None:
        raise NotAuthenticated()
    return caller_id


def _owned_deck(caller_id, deck_id):
    """Returns the deck if ``caller_id`` owns it, otherwise None."""
    if caller_id is None:
        return None
    deck = db.session.get(Deck, deck_id)
    if deck is None or deck.owner_id != caller_id:
        return None
    return deck


def _owned_question(caller_id, question_id):
    _require_caller(caller_id)
    question = db.session.get(Question, question_id)
    if question is None:
        raise NotFound("Question not found")
    if _owned_deck(caller_id, question.deck_id) is None:
        raise NotFound("Question not found")
    return question


# Decks

def list_decks(caller_id):
    """The caller's decks, each with a ``questionCount``."""
    if caller_id is None:
        return []

    rows = db.session.query(Deck, func.count(Question.id))\
        .outerjoin(Question, Question.deck_id == Deck.id)\
        .filter(Deck.owner_id == caller_id)\
        .group_by(Deck.id)\
        .order_by(Deck.id)\
        .all()

    decks = []
    for deck, question_count in rows:
        data = deck.to_dict()
        data["questionCount"] = question_count
        decks.append(data)
    return decks


def get_deck(caller_id, deck_id):
    return _owned_deck(caller_id, deck_id)


def create_deck(caller_id, name, description=None):
    _require_caller(caller_id)
    deck = Deck(name=name, description=description, owner_id=caller_id)
    db.session.add(deck)
    db.session.commit()
    return deck.id


def remove_deck(caller_id, deck_id):
    """Deletes the deck together with all of its questions."""
    _require_caller(caller_id)
    deck = _owned_deck(caller_id, deck_id)
    if deck is None:
        raise NotFound("Deck not found")

    question_count = len(deck.questions)
    db.session.delete(deck)
    db.session.commit()
    log.info("Deleted deck %s and %d questions", deck_id, question_count)


# Questions

def list_questions(caller_id, deck_id):
    if _owned_deck(caller_id, deck_id) is None:
        return []
    return Question.query.filter_by(deck_id=deck_id).order_by(Question.order, Question.id).all()


def get_question(question_id):
    """Unscoped lookup used by grading."""
    return db.session.get(Question, question_id)


def create_question(caller_id, deck_id, payload):
    _require_caller(caller_id)
    if _owned_deck(caller_id, deck_id) is None:
        raise NotFound("Deck not found")

    # Append-only ordering: the new question goes after the existing ones
    order = Question.query.filter_by(deck_id=deck_id).count()

    question = Question(deck_id=deck_id, order=order)
    question.apply_payload(payload)
    db.session.add(question)
    db.session.commit()
    return question.id


def update_question(caller_id, question_id, payload):
    question = _owned_question(caller_id, question_id)
    if question.type != payload.type:
        raise InvalidSubmission(
            f"Cannot change question {question_id} from {question.type} to {payload.type}"
        )
    question.apply_payload(payload)
    db.session.commit()


def remove_question(caller_id, question_id):
    """Deletes a single question. Answers that reference it are kept."""
    question = _owned_question(caller_id, question_id)
    db.session.delete(question)
    db.session.commit()
