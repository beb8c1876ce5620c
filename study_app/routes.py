from flask import Blueprint, request, jsonify, current_app

from . import answers as answer_service
from . import decks as deck_service
from . import sessions as session_service
from .auth import current_caller
from .schemas import (
    AnswerSubmission,
    DeckCreate,
    EvaluationRequest,
    FreeTextPayload,
    SessionCreate,
    parse_question_payload,
)

main_bp = Blueprint('main', __name__)


def _json_body():
    return request.get_json(silent=True) or {}


@main_bp.route('/health')
def health():
    return jsonify({'ok': True})


# Decks

@main_bp.route('/api/decks', methods=['GET'])
def list_decks():
    return jsonify(deck_service.list_decks(current_caller()))


@main_bp.route('/api/decks', methods=['POST'])
def create_deck():
    data = DeckCreate.model_validate(_json_body())
    deck_id = deck_service.create_deck(current_caller(), data.name, data.description)
    return jsonify({'id': deck_id}), 201


@main_bp.route('/api/decks/<int:deck_id>', methods=['GET'])
def get_deck(deck_id):
    deck = deck_service.get_deck(current_caller(), deck_id)
    return jsonify(deck.to_dict() if deck else None)


@main_bp.route('/api/decks/<int:deck_id>', methods=['DELETE'])
def delete_deck(deck_id):
    deck_service.remove_deck(current_caller(), deck_id)
    return jsonify({'success': True})


# Questions

@main_bp.route('/api/decks/<int:deck_id>/questions', methods=['GET'])
def list_questions(deck_id):
    questions = deck_service.list_questions(current_caller(), deck_id)
    return jsonify([q.to_dict() for q in questions])


@main_bp.route('/api/decks/<int:deck_id>/questions', methods=['POST'])
def create_question(deck_id):
    payload = parse_question_payload(_json_body())
    question_id = deck_service.create_question(current_caller(), deck_id, payload)
    return jsonify({'id': question_id}), 201


@main_bp.route('/api/questions/<int:question_id>', methods=['PUT'])
def update_question(question_id):
    payload = parse_question_payload(_json_body())
    deck_service.update_question(current_caller(), question_id, payload)
    return jsonify({'success': True})


@main_bp.route('/api/questions/<int:question_id>', methods=['DELETE'])
def delete_question(question_id):
    deck_service.remove_question(current_caller(), question_id)
    return jsonify({'success': True})


# Sessions

@main_bp.route('/api/sessions', methods=['GET'])
def list_sessions():
    sessions = session_service.list_sessions(current_caller())
    return jsonify([s.to_dict() for s in sessions])


@main_bp.route('/api/sessions', methods=['POST'])
def start_session():
    """Starts a new exam or practice session on a deck."""
    data = SessionCreate.model_validate(_json_body())
    session_id = session_service.create_session(
        current_caller(), data.deck_id, data.mode, data.time_limit_seconds
    )
    return jsonify({'id': session_id}), 201


@main_bp.route('/api/sessions/<int:session_id>', methods=['GET'])
def get_session(session_id):
    study_session = session_service.get_session(current_caller(), session_id)
    return jsonify(study_session.to_dict() if study_session else None)


@main_bp.route('/api/sessions/<int:session_id>/complete', methods=['POST'])
def complete_session(session_id):
    session_service.complete_session(current_caller(), session_id)
    return jsonify({'success': True})


@main_bp.route('/api/sessions/<int:session_id>/results', methods=['GET'])
def session_results(session_id):
    return jsonify(session_service.session_results(current_caller(), session_id))


# Answers

@main_bp.route('/api/sessions/<int:session_id>/answers', methods=['GET'])
def list_answers(session_id):
    found = answer_service.get_answers(current_caller(), session_id)
    return jsonify([a.to_dict() for a in found])


@main_bp.route('/api/sessions/<int:session_id>/answers', methods=['POST'])
def submit_answer(session_id):
    """Saves (or replaces) the answer to one question and queues free-text feedback."""
    submission = AnswerSubmission.model_validate(_json_body())
    answer_id = answer_service.submit_answer(current_caller(), session_id, submission)

    queued = False
    if submission.text_answer is not None and current_app.config.get('EVALUATE_ON_SUBMIT'):
        question = deck_service.get_question(submission.question_id)
        # The question may have been deleted since the answer was saved
        if question is not None and isinstance(question.payload, FreeTextPayload):
            current_app.extensions['evaluation_queue'].enqueue(answer_id, question.payload.prompt, submission.text_answer)
            queued = True

    return jsonify({'id': answer_id, 'evaluationQueued': queued})


@main_bp.route('/api/answers/<int:answer_id>/evaluate', methods=['POST'])
def evaluate_answer(answer_id):
    """Evaluates a free-text answer immediately; failures are returned to the caller."""
    data = EvaluationRequest.model_validate(_json_body())
    feedback = answer_service.evaluate_free_text(
        current_caller(),
        answer_id,
        data.question,
        data.answer,
        current_app.extensions['feedback_evaluator'],
    )
    return jsonify({'answerId': answer_id, 'feedback': feedback})
