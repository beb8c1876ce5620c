import logging

from langchain_core.globals import set_verbose
from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate
from langchain_openai import ChatOpenAI

from .errors import EvaluationError

# Suppress the verbose warning by setting the global verbosity flag
set_verbose(False)

log = logging.getLogger(__name__)

FALLBACK_FEEDBACK = "Unable to evaluate answer."

SYSTEM_INSTRUCTION = (
    "You are an expert {subject} professor evaluating student answers. "
    "Provide constructive feedback on the student's answer, noting what they got right "
    "and what could be improved. Be encouraging but accurate. "
    "Keep your response concise (2-3 sentences)."
)

USER_MESSAGE = "Question: {question}\n\nStudent Answer: {answer}\n\nProvide feedback on this answer."


def build_system_instruction(subject):
    return SYSTEM_INSTRUCTION.format(subject=subject)


def get_chat_client(config):
    """Helper function to create a ChatOpenAI client from the app configuration."""
    return ChatOpenAI(
        model=config.get('FEEDBACK_MODEL', 'gpt-4o-mini'),
        temperature=config.get('FEEDBACK_TEMPERATURE', 0.3),
        openai_api_key=config.get('OPENAI_API_KEY'),
        openai_api_base=config.get('OPENAI_BASE_URL'),
        max_retries=config.get('EVALUATION_MAX_RETRIES', 0),
        timeout=config.get('EVALUATION_TIMEOUT'),
    )


def build_feedback_prompt(subject):
    # The system text is escaped so that braces in a configured subject are kept literally
    system_text = build_system_instruction(subject).replace("{", "{{").replace("}", "}}")
    return ChatPromptTemplate.from_messages([
        ("system", system_text),
        ("human", USER_MESSAGE),
    ])


class FeedbackEvaluator:
    """
    Produces short written feedback for a free-text answer.

    Instances are callables ``(question, answer) -> str`` so that the
    evaluation queue and the request handlers can be given any other
    callable with the same shape.
    """

    def __init__(self, config):
        self.config = config

    def __call__(self, question, answer):
        if not self.config.get('OPENAI_API_KEY'):
            raise EvaluationError("OPENAI_API_KEY not configured.")

        prompt = build_feedback_prompt(self.config.get('FEEDBACK_SUBJECT', 'veterinary medicine'))
        chain = prompt | get_chat_client(self.config) | StrOutputParser()

        try:
            feedback = chain.invoke({"question": question, "answer": answer})
        except Exception as e:
            log.warning("Feedback request failed: %s", e)
            raise EvaluationError(f"An error occurred during evaluation: {e}") from e

        feedback = (feedback or "").strip()
        return feedback or FALLBACK_FEEDBACK
