"""Authentication API"""
import logging
import re
from flask import Blueprint, jsonify, current_app
from flask_jwt_extended import create_access_token
import bcrypt

from api.responses import DOMAIN_ERRORS, error_response, exception_response, json_body, server_error

auth_bp = Blueprint('auth', __name__)
logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r'[^@\s]+@[^@\s]+\.[^@\s]+')
MIN_PASSWORD_LENGTH = 8


@auth_bp.route('/login', methods=['POST'])
def login():
    data = json_body()
    email = data.get('email')
    password = data.get('password')

    if not isinstance(email, str) or not isinstance(password, str) or not email or not password:
        return error_response("Email and password required", 400, 'validation_error')

    try:
        db = current_app.db
        user = db.get_user_by_email(email)

        if not user:
            return error_response("Invalid credentials", 401, 'invalid_credentials')

        # Verify password
        if bcrypt.checkpw(password.encode('utf-8'), user['password_hash'].encode('utf-8')):
            access_token = create_access_token(identity=str(user['id']))
            return jsonify({
                "success": True,
                "token": access_token,
                "user": {
                    "id": user['id'],
                    "name": user['name'],
                    "email": user['email'],
                }
            })
        else:
            return error_response("Invalid credentials", 401, 'invalid_credentials')

    except Exception as e:
        return server_error(e)


def hash_password(password):
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')


def validate_signup(data):
    """Returns a list of validation errors for a signup body."""
    errors = []
    name = data.get('name')
    email = data.get('email')
    password = data.get('password')

    if not isinstance(name, str) or not name.strip():
        errors.append("name is required")
    elif len(name) > 255:
        errors.append("name must be at most 255 characters")

    if not isinstance(email, str) or not EMAIL_PATTERN.fullmatch(email):
        errors.append("email must be a valid email address")
    elif len(email) > 255:
        errors.append("email must be at most 255 characters")

    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"password must be at least {MIN_PASSWORD_LENGTH} characters")
    elif data.get('password_confirmation') != password:
        errors.append("password confirmation does not match")

    return errors


@auth_bp.route('/register', methods=['POST'])
def register():
    """Create an account, optionally enrolling a face descriptor at the same time."""
    data = json_body()
    errors = validate_signup(data)
    if errors:
        return error_response("Validation failed", 400, 'validation_error', details=errors)

    descriptor = data.get('facial_encoding')
    if descriptor is None:
        descriptor = data.get('encoding')

    try:
        db = current_app.db
        if db.get_user_by_email(data['email']):
            return error_response("The email has already been taken.", 422, 'email_taken')

        # Reject a bad descriptor before the account exists
        if descriptor not in (None, ''):
            current_app.face_service.check_registrable(descriptor)

        user_id = db.create_user(
            name=data['name'].strip(),
            email=data['email'],
            password_hash=hash_password(data['password']),
            ojt_total_hours=current_app.config['OJT_DEFAULT_TOTAL_HOURS'],
        )
        facial_enabled = False
        if descriptor not in (None, ''):
            current_app.face_service.register(user_id, descriptor)
            facial_enabled = True

        logger.info(f"Registered user {user_id} <{data['email']}> (face enrolled: {facial_enabled})")
        return jsonify({
            "success": True,
            "token": create_access_token(identity=str(user_id)),
            "user": {
                "id": user_id,
                "name": data['name'].strip(),
                "email": data['email'],
                "facial_enabled": facial_enabled,
            }
        }), 201

    except DOMAIN_ERRORS as e:
        return exception_response(e)
    except Exception as e:
        return server_error(e)
