"""Shared JSON responses and the domain-error → HTTP mapping used by all blueprints"""
import logging
from flask import jsonify, request
from flask_jwt_extended import get_jwt_identity

from engines.facial_recognition.capture import CaptureInProgress
from engines.facial_recognition.matcher import FaceMatchError, InvalidInput, DimensionMismatch
from services.attendance_service import AttendanceError
from services.face_service import NotEnrolledError, DuplicateFaceError, FaceMismatchError

logger = logging.getLogger(__name__)

# Exceptions a view can translate into a client-facing response
DOMAIN_ERRORS = (
    FaceMatchError, NotEnrolledError, FaceMismatchError,
    DuplicateFaceError, CaptureInProgress, AttendanceError,
)


def json_body():
    """The request JSON object, or an empty dict when the body is missing or not an object."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def current_user_id():
    return int(get_jwt_identity())


def error_response(message, status, code='error', **extra):
    body = {"success": False, "error": message, "code": code}
    body.update(extra)
    return jsonify(body), status


def exception_response(e):
    """Map a domain exception to its response. Each failure kind keeps its own message."""
    if isinstance(e, NotEnrolledError):
        return error_response("No face registered. Please register your face first.", 404, e.code)
    if isinstance(e, FaceMismatchError):
        return error_response("Wrong face detected. Please try again.", 401, e.code,
                              distance=e.result.to_dict()['distance'])
    if isinstance(e, (InvalidInput, DimensionMismatch)):
        return error_response("Face verification failed, please retake.", 400, e.code, detail=str(e))
    if isinstance(e, DuplicateFaceError):
        return error_response(str(e), 422, e.code)
    if isinstance(e, CaptureInProgress):
        return error_response("A face capture is already being processed. Please wait.", 409, e.code)
    if isinstance(e, AttendanceError):
        return error_response(str(e), e.status, e.code)
    return server_error(e)


def server_error(e):
    logger.error(f"Unhandled error: {e}", exc_info=True)
    return error_response(str(e), 500, 'server_error')
