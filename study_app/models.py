from . import db
from .schemas import FreeTextPayload, MatchPair, MatchPayload, MultipleChoicePayload
import datetime


def utcnow():
    """Current UTC time as a naive datetime, the form stored in the database."""
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


def _isoformat(value):
    return value.isoformat() if value is not None else None


class User(db.Model):
    """An account that owns decks and sessions."""
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String, unique=True, nullable=False)
    password_hash = db.Column(db.String, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)

    def __repr__(self):
        return f"<User id={self.id} email='{self.email}'>"


class Deck(db.Model):
    """A named collection of questions owned by one user."""
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String, nullable=False)
    description = db.Column(db.Text, nullable=True)
    owner_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    questions = db.relationship('Question', backref='deck', lazy=True, cascade="all, delete-orphan")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "ownerId": self.owner_id,
        }

    def __repr__(self):
        return f"<Deck id={self.id} name='{self.name}'>"


class Question(db.Model):
    """
    A question in a deck. The ``type`` column selects which of the payload
    columns are meaningful; ``payload`` exposes them as a tagged variant.
    """
    id = db.Column(db.Integer, primary_key=True)
    deck_id = db.Column(db.Integer, db.ForeignKey('deck.id'), nullable=False, index=True)
    type = db.Column(db.String, nullable=False)
    # Position in the deck at creation time; not renumbered on delete
    order = db.Column(db.Integer, nullable=False)

    match_pairs = db.Column(db.JSON, nullable=True)   # match
    question_text = db.Column(db.Text, nullable=True)  # multiple_choice
    choices = db.Column(db.JSON, nullable=True)        # multiple_choice
    correct_indices = db.Column(db.JSON, nullable=True)  # multiple_choice
    prompt = db.Column(db.Text, nullable=True)         # free_text

    @property
    def payload(self):
        if self.type == "match":
            return MatchPayload(match_pairs=[MatchPair(**pair) for pair in self.match_pairs or []])
        if self.type == "multiple_choice":
            return MultipleChoicePayload(
                question=self.question_text,
                choices=list(self.choices or []),
                correct_indices=list(self.correct_indices or []),
            )
        if self.type == "free_text":
            return FreeTextPayload(prompt=self.prompt)
        raise ValueError(f"Unknown question type: {self.type!r}")

    def apply_payload(self, payload):
        """Stores a payload variant on the row, clearing the other variants' columns."""
        self.type = payload.type
        self.match_pairs = None
        self.question_text = None
        self.choices = None
        self.correct_indices = None
        self.prompt = None

        if isinstance(payload, MatchPayload):
            self.match_pairs = [pair.model_dump() for pair in payload.match_pairs]
        elif isinstance(payload, MultipleChoicePayload):
            self.question_text = payload.question
            self.choices = list(payload.choices)
            self.correct_indices = list(payload.correct_indices)
        elif isinstance(payload, FreeTextPayload):
            self.prompt = payload.prompt
        else:
            raise TypeError(f"Unsupported question payload: {type(payload).__name__}")

    def to_dict(self):
        data = {"id": self.id, "deckId": self.deck_id, "order": self.order}
        data.update(self.payload.model_dump(by_alias=True))
        return data

    def __repr__(self):
        return f"<Question id={self.id} type='{self.type}' order={self.order}>"


class StudySession(db.Model):
    """One play-through of a deck, in exam or practice mode."""
    __tablename__ = 'study_session'

    id = db.Column(db.Integer, primary_key=True)
    # Not a foreign key: sessions outlive the deck they were played on
    deck_id = db.Column(db.Integer, nullable=False, index=True)
    owner_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    mode = db.Column(db.String, nullable=False)
    time_limit_seconds = db.Column(db.Integer, nullable=True)
    start_time = db.Column(db.DateTime, nullable=False, default=utcnow)
    end_time = db.Column(db.DateTime, nullable=True)
    completed = db.Column(db.Boolean, nullable=False, default=False)
    answers = db.relationship('Answer', backref='session', lazy=True, cascade="all, delete-orphan")

    @property
    def deadline(self):
        if not self.time_limit_seconds:
            return None
        return self.start_time + datetime.timedelta(seconds=self.time_limit_seconds)

    def is_expired(self, now=None):
        """True once the time limit has elapsed. Informational only; nothing enforces it."""
        deadline = self.deadline
        if deadline is None:
            return False
        return (now or utcnow()) >= deadline

    def to_dict(self):
        return {
            "id": self.id,
            "deckId": self.deck_id,
            "ownerId": self.owner_id,
            "mode": self.mode,
            "timeLimitSeconds": self.time_limit_seconds,
            "startTime": _isoformat(self.start_time),
            "endTime": _isoformat(self.end_time),
            "completed": self.completed,
            "deadline": _isoformat(self.deadline),
            "expired": self.is_expired(),
        }

    def __repr__(self):
        return f"<StudySession id={self.id} mode='{self.mode}' completed={self.completed}>"


class Answer(db.Model):
    """A user's response to one question within one session."""
    __table_args__ = (
        db.UniqueConstraint('session_id', 'question_id', name='uniq_answer_per_session_question'),
    )

    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.Integer, db.ForeignKey('study_session.id'), nullable=False, index=True)
    # Not a foreign key: deleting a question leaves its answers in place
    question_id = db.Column(db.Integer, nullable=False, index=True)

    match_answers = db.Column(db.JSON, nullable=True)     # [{"questionIndex": i, "answerIndex": j}]
    selected_indices = db.Column(db.JSON, nullable=True)
    text_answer = db.Column(db.Text, nullable=True)

    is_correct = db.Column(db.Boolean, nullable=True)  # None for free text and missing payloads
    llm_feedback = db.Column(db.Text, nullable=True)

    answered_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "sessionId": self.session_id,
            "questionId": self.question_id,
            "matchAnswers": self.match_answers,
            "selectedIndices": self.selected_indices,
            "textAnswer": self.text_answer,
            "isCorrect": self.is_correct,
            "llmFeedback": self.llm_feedback,
            "answeredAt": _isoformat(self.answered_at),
        }

    def __repr__(self):
        return f"<Answer session_id={self.session_id} question_id={self.question_id} is_correct={self.is_correct}>"
