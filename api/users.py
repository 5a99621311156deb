"""User API — OJT dates and required hours"""
import math
import numbers
import re
from datetime import date
from flask import Blueprint, jsonify, current_app
from flask_jwt_extended import jwt_required

from api.responses import current_user_id, error_response, json_body, server_error
from services.attendance_service import serialize_row

users_bp = Blueprint('users', __name__)


# users.ojt_total_hours is NUMERIC(8,2)
MAX_TOTAL_HOURS = 1_000_000

_HOURS_PATTERN = re.compile(r'\s*\d+(\.\d+)?\s*')


def _parse_date(value):
    if value in (None, ''):
        return None
    return date.fromisoformat(str(value))


def _parse_hours(value):
    """Finite float from a JSON number or a plain decimal string, else None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, numbers.Real):
        hours = float(value)
    elif isinstance(value, str) and _HOURS_PATTERN.fullmatch(value):
        hours = float(value)
    else:
        return None
    return hours if math.isfinite(hours) else None


def validate_ojt_info(data, current):
    """
    Validate an OJT info update against the stored values.

    Returns (updates, errors).
    """
    updates = {}
    errors = []

    for field in ('ojt_start_date', 'ojt_end_date'):
        if field in data:
            try:
                updates[field] = _parse_date(data[field])
            except ValueError:
                errors.append(f"{field} must be a date (YYYY-MM-DD)")

    if data.get('ojt_total_hours') is not None:
        hours = _parse_hours(data['ojt_total_hours'])
        if hours is None:
            errors.append("ojt_total_hours must be a number")
        elif hours < 1:
            errors.append("ojt_total_hours must be at least 1")
        elif hours >= MAX_TOTAL_HOURS:
            errors.append(f"ojt_total_hours must be less than {MAX_TOTAL_HOURS}")
        else:
            updates['ojt_total_hours'] = hours

    if not errors:
        start = updates.get('ojt_start_date', (current or {}).get('ojt_start_date'))
        end = updates.get('ojt_end_date', (current or {}).get('ojt_end_date'))
        if start and end and end <= start:
            errors.append("ojt_end_date must be after ojt_start_date")

    return updates, errors


def _ojt_body(info):
    body = serialize_row(info) or {}
    if body.get('ojt_total_hours') is not None:
        body['ojt_total_hours'] = float(body['ojt_total_hours'])
    return body


@users_bp.route('/ojt-info', methods=['GET'])
@jwt_required()
def get_ojt_info():
    try:
        info = current_app.db.get_ojt_info(current_user_id())
        if info is None:
            return error_response("User not found", 404, 'not_found')
        return jsonify({"success": True, "data": _ojt_body(info)})
    except Exception as e:
        return server_error(e)


@users_bp.route('/ojt-info', methods=['PUT'])
@jwt_required()
def update_ojt_info():
    data = json_body()
    user_id = current_user_id()
    try:
        db = current_app.db
        current = db.get_ojt_info(user_id)
        if current is None:
            return error_response("User not found", 404, 'not_found')

        updates, errors = validate_ojt_info(data, current)
        if errors:
            return error_response("Validation failed", 400, 'validation_error', details=errors)

        db.update_ojt_info(user_id, **updates)
        return jsonify({
            "success": True,
            "message": "OJT information updated successfully",
            "data": _ojt_body(db.get_ojt_info(user_id)),
        })
    except Exception as e:
        return server_error(e)
