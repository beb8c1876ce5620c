from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import (
    create_access_token,
    get_jwt_identity,
    set_access_cookies,
    unset_jwt_cookies,
    verify_jwt_in_request,
)
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import InvalidTokenError
from sqlalchemy.exc import IntegrityError
from werkzeug.security import check_password_hash, generate_password_hash

from . import db
from .models import User
from .schemas import Credentials

auth_bp = Blueprint('auth', __name__, url_prefix='/auth')


def current_caller():
    """
    Resolves the request's user id, or None for anonymous requests.

    A missing or unusable token is not an error here; each service
    operation decides whether anonymous callers get an error or an empty
    result.
    """
    try:
        verify_jwt_in_request(optional=True)
    except (JWTExtendedException, InvalidTokenError) as e:
        current_app.logger.info("Ignoring unusable access token: %s", e)
        return None
    identity = get_jwt_identity()
    if identity is None:
        return None
    return int(identity)


def _token_response(user, status=200):
    access_token = create_access_token(identity=str(user.id))
    response = jsonify({'id': user.id, 'email': user.email, 'accessToken': access_token})
    set_access_cookies(response, access_token)
    return response, status


@auth_bp.route('/register', methods=['POST'])
def register():
    credentials = Credentials.model_validate(request.get_json(silent=True) or {})
    user = User(
        email=credentials.email.strip().lower(),
        password_hash=generate_password_hash(credentials.password),
    )
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({'error': 'Email already registered'}), 409

    current_app.logger.info(f"Registered user {user.id}")
    return _token_response(user, status=201)


@auth_bp.route('/login', methods=['POST'])
def login():
    credentials = Credentials.model_validate(request.get_json(silent=True) or {})
    user = User.query.filter_by(email=credentials.email.strip().lower()).first()
    if user is None or not check_password_hash(user.password_hash, credentials.password):
        return jsonify({'error': 'Invalid email or password'}), 401
    return _token_response(user)


@auth_bp.route('/logout', methods=['POST'])
def logout():
    response = jsonify({'success': True})
    unset_jwt_cookies(response)
    return response
