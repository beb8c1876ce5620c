import datetime

import pytest

from study_app import db, decks, models, sessions
from study_app.answers import submit_answer
from study_app.errors import NotAuthenticated, NotFound
from study_app.schemas import AnswerSubmission, FreeTextPayload, MultipleChoicePayload


@pytest.fixture
def deck_id(app, owner_id):
    return decks.create_deck(owner_id, "Microbiology")


class TestCreateSession:

    def test_creates_active_session(self, deck_id, owner_id):
        session_id = sessions.create_session(owner_id, deck_id, "exam", 600)

        study_session = sessions.get_session(owner_id, session_id)
        assert study_session.mode == "exam"
        assert study_session.time_limit_seconds == 600
        assert study_session.completed is False
        assert study_session.end_time is None
        assert study_session.start_time is not None

    def test_time_limit_is_not_tied_to_mode(self, deck_id, owner_id):
        exam_id = sessions.create_session(owner_id, deck_id, "exam")
        practice_id = sessions.create_session(owner_id, deck_id, "practice", 30)
        assert sessions.get_session(owner_id, exam_id).time_limit_seconds is None
        assert sessions.get_session(owner_id, practice_id).time_limit_seconds == 30

    def test_requires_caller(self, deck_id):
        with pytest.raises(NotAuthenticated):
            sessions.create_session(None, deck_id, "practice")

    def test_requires_deck_ownership(self, deck_id, other_id):
        with pytest.raises(NotFound):
            sessions.create_session(other_id, deck_id, "practice")
        with pytest.raises(NotFound):
            sessions.create_session(other_id, 9999, "practice")


class TestGetAndList:

    def test_get_hides_other_users_sessions(self, deck_id, owner_id, other_id):
        session_id = sessions.create_session(owner_id, deck_id, "practice")
        assert sessions.get_session(other_id, session_id) is None
        assert sessions.get_session(None, session_id) is None
        assert sessions.get_session(owner_id, 9999) is None

    def test_list_is_newest_first(self, deck_id, owner_id, other_id):
        first = sessions.create_session(owner_id, deck_id, "practice")
        second = sessions.create_session(owner_id, deck_id, "exam", 60)
        assert [s.id for s in sessions.list_sessions(owner_id)] == [second, first]
        assert sessions.list_sessions(other_id) == []
        assert sessions.list_sessions(None) == []


class TestComplete:

    def test_complete_marks_session_terminal(self, deck_id, owner_id):
        session_id = sessions.create_session(owner_id, deck_id, "practice")
        sessions.complete_session(owner_id, session_id)

        study_session = sessions.get_session(owner_id, session_id)
        assert study_session.completed is True
        assert study_session.end_time >= study_session.start_time

    def test_recompleting_rewrites_end_time(self, deck_id, owner_id, monkeypatch):
        session_id = sessions.create_session(owner_id, deck_id, "practice")
        sessions.complete_session(owner_id, session_id)
        first_end = sessions.get_session(owner_id, session_id).end_time

        later = first_end + datetime.timedelta(minutes=5)
        monkeypatch.setattr(models, "utcnow", lambda: later)
        sessions.complete_session(owner_id, session_id)

        study_session = sessions.get_session(owner_id, session_id)
        assert study_session.completed is True
        assert study_session.end_time == later

    def test_complete_requires_ownership(self, deck_id, owner_id, other_id):
        session_id = sessions.create_session(owner_id, deck_id, "practice")
        with pytest.raises(NotFound):
            sessions.complete_session(other_id, session_id)
        with pytest.raises(NotAuthenticated):
            sessions.complete_session(None, session_id)
        assert sessions.get_session(owner_id, session_id).completed is False


class TestTimeLimit:

    def test_expiry_is_reported_not_enforced(self, deck_id, owner_id):
        question_id = decks.create_question(owner_id, deck_id, FreeTextPayload(prompt="Name a gram-negative rod."))
        session_id = sessions.create_session(owner_id, deck_id, "exam", 60)
        study_session = sessions.get_session(owner_id, session_id)

        assert study_session.deadline == study_session.start_time + datetime.timedelta(seconds=60)
        assert not study_session.is_expired(study_session.start_time)
        assert study_session.is_expired(study_session.start_time + datetime.timedelta(seconds=61))

        study_session.start_time = study_session.start_time - datetime.timedelta(hours=1)
        db.session.commit()
        assert sessions.get_session(owner_id, session_id).to_dict()["expired"] is True

        # A late submission is still accepted
        answer_id = submit_answer(owner_id, session_id, AnswerSubmission(question_id=question_id, text_answer="E. coli"))
        assert answer_id is not None

    def test_untimed_session_never_expires(self, deck_id, owner_id):
        session_id = sessions.create_session(owner_id, deck_id, "practice")
        study_session = sessions.get_session(owner_id, session_id)
        assert study_session.deadline is None
        assert study_session.to_dict()["expired"] is False


class TestResults:

    def test_results_are_derived_from_answers(self, deck_id, owner_id, other_id):
        mc = MultipleChoicePayload(question="Pick A", choices=["A", "B"], correct_indices=[0])
        q1 = decks.create_question(owner_id, deck_id, mc)
        q2 = decks.create_question(owner_id, deck_id, mc)
        q3 = decks.create_question(owner_id, deck_id, FreeTextPayload(prompt="Explain."))
        decks.create_question(owner_id, deck_id, mc)
        session_id = sessions.create_session(owner_id, deck_id, "exam", 300)

        submit_answer(owner_id, session_id, AnswerSubmission(question_id=q1, selected_indices=[0]))
        submit_answer(owner_id, session_id, AnswerSubmission(question_id=q2, selected_indices=[1]))
        submit_answer(owner_id, session_id, AnswerSubmission(question_id=q3, text_answer="Because."))
        sessions.complete_session(owner_id, session_id)

        results = sessions.session_results(owner_id, session_id)
        assert results == {
            "sessionId": session_id,
            "answered": 3,
            "correct": 1,
            "total": 4,
            "percentage": 25,
            "completed": True,
        }
        assert sessions.session_results(other_id, session_id) is None

    def test_no_answers_scores_zero(self, deck_id, owner_id):
        decks.create_question(owner_id, deck_id, FreeTextPayload(prompt="Explain."))
        session_id = sessions.create_session(owner_id, deck_id, "practice")
        results = sessions.session_results(owner_id, session_id)
        assert results["answered"] == 0
        assert results["percentage"] == 0

    @pytest.mark.parametrize("size, correct, expected", [
        (8, 1, 13),
        (8, 3, 38),
        (3, 1, 33),
    ])
    def test_percentage_rounds_halves_up(self, deck_id, owner_id, size, correct, expected):
        mc = MultipleChoicePayload(question="Pick A", choices=["A", "B"], correct_indices=[0])
        question_ids = [decks.create_question(owner_id, deck_id, mc) for _ in range(size)]
        session_id = sessions.create_session(owner_id, deck_id, "practice")
        for question_id in question_ids[:correct]:
            submit_answer(owner_id, session_id, AnswerSubmission(question_id=question_id, selected_indices=[0]))

        assert sessions.session_results(owner_id, session_id)["percentage"] == expected
