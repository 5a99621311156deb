"""Attendance API — face-gated time in/out, calendar, history, hours"""
import logging
from datetime import date
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required

from api.facial_recognition import register_descriptor
from api.responses import (
    DOMAIN_ERRORS, current_user_id, error_response, exception_response, json_body, server_error,
)
from services.attendance_service import serialize_row

attendance_bp = Blueprint('attendance', __name__)
logger = logging.getLogger(__name__)


@attendance_bp.route('/store-facial-encoding', methods=['POST'])
@jwt_required()
def store_facial_encoding():
    return register_descriptor()


@attendance_bp.route('/time-in', methods=['POST'])
@jwt_required()
def time_in():
    data = json_body()
    if not isinstance(data.get('encoding'), list):
        return error_response("encoding must be an array", 400, 'validation_error')

    user_id = current_user_id()
    try:
        with current_app.capture_registry.capture(user_id):
            row = current_app.attendance_service.time_in(user_id, data['encoding'])
        return jsonify({
            "success": True,
            "message": "Time in recorded successfully",
            "data": serialize_row(row),
        })
    except DOMAIN_ERRORS as e:
        return exception_response(e)
    except Exception as e:
        return server_error(e)


@attendance_bp.route('/time-out', methods=['POST'])
@jwt_required()
def time_out():
    data = json_body()
    if not isinstance(data.get('encoding'), list):
        return error_response("encoding must be an array", 400, 'validation_error')
    if not isinstance(data.get('is_overtime'), bool):
        return error_response("is_overtime must be true or false", 400, 'validation_error')

    user_id = current_user_id()
    try:
        with current_app.capture_registry.capture(user_id):
            row = current_app.attendance_service.time_out(
                user_id, data['encoding'], is_overtime=data['is_overtime'])
        return jsonify({
            "success": True,
            "message": "Time out recorded successfully",
            "data": serialize_row(row),
        })
    except DOMAIN_ERRORS as e:
        return exception_response(e)
    except Exception as e:
        return server_error(e)


@attendance_bp.route('/today', methods=['GET'])
@jwt_required()
def get_today_attendance():
    try:
        row = current_app.attendance_service.today(current_user_id())
        return jsonify({"success": True, "data": serialize_row(row)})
    except Exception as e:
        return server_error(e)


@attendance_bp.route('/monthly', methods=['GET'])
@jwt_required()
def get_monthly_attendance():
    today = date.today()
    try:
        month = int(request.args.get('month', today.month))
        year = int(request.args.get('year', today.year))
    except ValueError:
        return error_response("month and year must be integers", 400, 'validation_error')
    if not 1 <= month <= 12:
        return error_response("month must be between 1 and 12", 400, 'validation_error')

    try:
        rows = current_app.attendance_service.monthly(current_user_id(), year, month)
        return jsonify({"success": True, "data": [serialize_row(r) for r in rows]})
    except Exception as e:
        return server_error(e)


@attendance_bp.route('/history', methods=['GET'])
@jwt_required()
def get_attendance_history():
    try:
        rows = current_app.attendance_service.history(current_user_id())
        return jsonify({"success": True, "data": [serialize_row(r) for r in rows]})
    except Exception as e:
        return server_error(e)


@attendance_bp.route('/total-hours', methods=['GET'])
@jwt_required()
def get_total_hours():
    """Total hours worked plus progress toward the required OJT hours."""
    try:
        progress = current_app.attendance_service.ojt_progress(current_user_id())
        return jsonify({"success": True, "data": progress})
    except Exception as e:
        return server_error(e)
