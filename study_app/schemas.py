"""
Request payloads and the tagged question variants.

Keys on the wire are camelCase (``matchPairs``, ``correctIndices``) while
the Python attributes stay snake_case; both spellings are accepted on input.
"""
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt, TypeAdapter, model_validator
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Question variants

class MatchPair(ApiModel):
    question: str
    answer: str


class MatchPayload(ApiModel):
    """Pairs are matched by position: the i-th question goes with the i-th answer."""
    type: Literal["match"] = "match"
    match_pairs: List[MatchPair]


class MultipleChoicePayload(ApiModel):
    type: Literal["multiple_choice"] = "multiple_choice"
    question: str
    choices: List[str]
    correct_indices: List[StrictInt]


class FreeTextPayload(ApiModel):
    type: Literal["free_text"] = "free_text"
    prompt: str


QuestionPayload = Annotated[
    Union[MatchPayload, MultipleChoicePayload, FreeTextPayload],
    Field(discriminator="type"),
]

question_payload_adapter = TypeAdapter(QuestionPayload)


def parse_question_payload(data):
    """Validates a JSON object into one of the question variants."""
    return question_payload_adapter.validate_python(data)


# Answer submissions

class MatchAnswer(ApiModel):
    question_index: StrictInt
    answer_index: StrictInt


class AnswerSubmission(ApiModel):
    """A single answer; carries at most one of the three payload fields."""
    question_id: int
    match_answers: Optional[List[MatchAnswer]] = None
    selected_indices: Optional[List[StrictInt]] = None
    text_answer: Optional[str] = None

    @model_validator(mode="after")
    def _one_payload(self):
        supplied = [
            name for name in ("match_answers", "selected_indices", "text_answer")
            if getattr(self, name) is not None
        ]
        if len(supplied) > 1:
            raise ValueError(f"Only one answer payload may be supplied, got: {', '.join(supplied)}")
        return self


# Other request bodies

class DeckCreate(ApiModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None


class SessionCreate(ApiModel):
    deck_id: int
    mode: Literal["exam", "practice"]
    time_limit_seconds: Optional[int] = Field(None, gt=0)


class EvaluationRequest(ApiModel):
    question: str
    answer: str


class Credentials(ApiModel):
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=8)
