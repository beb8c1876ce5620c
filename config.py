import os
from dotenv import load_dotenv

# Load environment variables from a .env file
load_dotenv()

# Define base directory for the project
BASE_DIR = os.path.abspath(os.path.dirname(__file__))
DB_DIR = os.path.join(BASE_DIR, 'database')

# Ensure the database directory exists before the app uses it
if not os.path.exists(DB_DIR):
    os.makedirs(DB_DIR)

def _env_flag(name, default=False):
    """Reads a boolean flag from the environment ('1', 'true', 'yes', 'on')."""
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')

class Config:
    """Base configuration."""
    SECRET_KEY = os.environ.get('SECRET_KEY', 'a_default_secret_key_for_development')

    # Database configuration using an absolute path
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL', f'sqlite:///{os.path.join(DB_DIR, "study.db")}')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # JWT settings; tokens are accepted from cookies (browser) or Authorization headers (API clients)
    JWT_SECRET_KEY = os.environ.get('JWT_SECRET_KEY', SECRET_KEY)
    JWT_TOKEN_LOCATION = ["cookies", "headers"]
    JWT_COOKIE_CSRF_PROTECT = False

    # OpenAI-compatible endpoint used for free-text feedback
    OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY")
    OPENAI_BASE_URL = os.environ.get("OPENAI_BASE_URL")

    FEEDBACK_MODEL = os.environ.get("FEEDBACK_MODEL", "gpt-4o-mini")
    FEEDBACK_TEMPERATURE = float(os.environ.get("FEEDBACK_TEMPERATURE", 0.3))
    # Subject the evaluator is framed as an expert in
    FEEDBACK_SUBJECT = os.environ.get("FEEDBACK_SUBJECT", "veterinary medicine")

    # Evaluation jobs: no retry unless configured
    EVALUATION_MAX_RETRIES = int(os.environ.get("EVALUATION_MAX_RETRIES", 0))
    EVALUATION_TIMEOUT = float(os.environ.get("EVALUATION_TIMEOUT", 30))
    EVALUATION_WORKERS = int(os.environ.get("EVALUATION_WORKERS", 4))
    EVALUATION_EAGER = _env_flag("EVALUATION_EAGER")
    EVALUATE_ON_SUBMIT = _env_flag("EVALUATE_ON_SUBMIT", default=True)
