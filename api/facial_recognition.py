"""
Facial Recognition API
Descriptor registration, 1-to-N verification, status and disable.
"""
import logging
from flask import Blueprint, jsonify, current_app
from flask_jwt_extended import jwt_required

from api.responses import (
    DOMAIN_ERRORS, current_user_id, error_response, exception_response, json_body, server_error,
)

facial_bp = Blueprint('facial_recognition', __name__)
logger = logging.getLogger(__name__)


def descriptor_from(data):
    """Descriptor from a request body; accepts `encoding` (array) or `facial_encoding` (JSON string)."""
    if 'encoding' in data:
        return data['encoding']
    return data.get('facial_encoding')


def register_descriptor():
    """Store the current user's face descriptor. Shared by both registration routes."""
    data = json_body()
    descriptor = descriptor_from(data)
    if descriptor is None:
        return error_response("encoding is required", 400, 'validation_error')

    user_id = current_user_id()
    try:
        with current_app.capture_registry.capture(user_id):
            stored = current_app.face_service.register(user_id, descriptor)
        return jsonify({
            "success": True,
            "message": "Facial recognition registered successfully",
            "dimensions": stored['dimensions'],
        })
    except DOMAIN_ERRORS as e:
        return exception_response(e)
    except Exception as e:
        return server_error(e)


@facial_bp.route('/store', methods=['POST'])
@jwt_required()
def store_facial_data():
    return register_descriptor()


@facial_bp.route('/verify', methods=['POST'])
def verify_facial_data():
    """Identify which enrolled user a descriptor belongs to."""
    data = json_body()
    descriptor = descriptor_from(data)
    if descriptor is None:
        return error_response("encoding is required", 400, 'validation_error')

    try:
        result = current_app.face_service.identify(descriptor)
        body = result.to_dict()
        if result.is_match:
            return jsonify({
                "success": True,
                "matched": True,
                "user_id": result.matched_id,
                "distance": body['distance'],
            })
        return jsonify({
            "success": True,
            "matched": False,
            "distance": body['distance'],
            "reason": body['reason'],
            "message": "No matching face found",
        })
    except DOMAIN_ERRORS as e:
        return exception_response(e)
    except Exception as e:
        return server_error(e)


@facial_bp.route('/disable', methods=['POST'])
@jwt_required()
def disable_facial_recognition():
    try:
        current_app.face_service.disable(current_user_id())
        return jsonify({"success": True, "message": "Facial recognition disabled"})
    except Exception as e:
        return server_error(e)


@facial_bp.route('/status', methods=['GET'])
@jwt_required()
def facial_status():
    try:
        return jsonify(current_app.face_service.status(current_user_id()))
    except Exception as e:
        return server_error(e)
