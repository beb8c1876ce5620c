from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_jwt_extended import JWTManager
from pydantic import ValidationError
import os

# Initialize extensions
db = SQLAlchemy()
jwt = JWTManager()

def create_app(config_object='config.Config'):
    """Create and configure an instance of the Flask application."""
    app = Flask(__name__, instance_relative_config=True)

    # Load configuration from config.py unless a test/deployment config is given
    app.config.from_object(config_object)

    # Ensure the instance folder exists
    try:
        os.makedirs(app.instance_path)
    except OSError:
        pass

    # Initialize extensions with the app
    db.init_app(app)
    jwt.init_app(app)

    from .errors import StudyError

    @app.errorhandler(StudyError)
    def handle_study_error(error):
        return jsonify({'error': str(error)}), error.status_code

    @app.errorhandler(ValidationError)
    def handle_validation_error(error):
        return jsonify({
            'error': 'Invalid request',
            'details': error.errors(include_url=False, include_context=False),
        }), 400

    with app.app_context():
        # Import parts of our application
        from . import routes
        from . import auth
        from . import models  # noqa: F401 - registers the tables
        from .evaluation import FeedbackEvaluator
        from .tasks import EvaluationQueue

        # Create database tables for our models
        db.create_all()

        # Free-text feedback: the evaluator can be swapped via app.extensions
        app.extensions['feedback_evaluator'] = FeedbackEvaluator(app.config)
        EvaluationQueue(app)

        # Register blueprints
        app.register_blueprint(routes.main_bp)
        app.register_blueprint(auth.auth_bp)

        return app
