"""
Attendance Service

Face-gated time-in / time-out for OJT trainees, plus the hours-worked and
OJT-progress figures shown on the dashboard.
"""

import logging
from datetime import date, datetime, time, timedelta
from decimal import Decimal

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 3600


class AttendanceError(Exception):
    """An attendance action is not allowed in the current state."""
    code = 'attendance_error'
    status = 400


class AlreadyTimedInError(AttendanceError):
    code = 'already_timed_in'


class NotTimedInError(AttendanceError):
    code = 'not_timed_in'


class AlreadyTimedOutError(AttendanceError):
    code = 'already_timed_out'


def _to_seconds(value) -> int:
    """Seconds since midnight for a time, datetime, timedelta or 'HH:MM[:SS]' string."""
    if isinstance(value, timedelta):
        return int(value.total_seconds()) % SECONDS_PER_DAY
    if isinstance(value, (time, datetime)):
        return value.hour * 3600 + value.minute * 60 + value.second
    parts = str(value).split(':')
    hours, minutes = int(parts[0]), int(parts[1])
    seconds = int(float(parts[2])) if len(parts) > 2 else 0
    return hours * 3600 + minutes * 60 + seconds


def hours_worked(time_in, time_out) -> float:
    """Hours between time-in and time-out; a time-out before time-in wraps past midnight."""
    diff = _to_seconds(time_out) - _to_seconds(time_in)
    if diff < 0:
        diff += SECONDS_PER_DAY
    return diff / 3600


def serialize_row(row):
    """Make an attendance row JSON-safe."""
    if row is None:
        return None
    out = {}
    for key, value in row.items():
        if isinstance(value, (datetime, date, time)):
            out[key] = value.isoformat()
        elif isinstance(value, timedelta):
            out[key] = str(value)
        elif isinstance(value, Decimal):
            out[key] = float(value)
        else:
            out[key] = value
    return out


class AttendanceService:
    """Records attendance for trainees after face verification."""

    def __init__(self, db, face_service, default_total_hours=160):
        """
        Args:
            db: DBManager instance
            face_service: FaceService used to gate time-in / time-out
            default_total_hours: required OJT hours when the user has none set
        """
        self.db = db
        self.face_service = face_service
        self.default_total_hours = default_total_hours

    def time_in(self, user_id, descriptor, now=None):
        now = now or datetime.now()
        self.face_service.require_match(user_id, descriptor)

        existing = self.db.get_attendance(user_id, now.date())
        if existing and existing.get('time_in'):
            logger.warning(f"User {user_id} already timed in on {now.date()}")
            raise AlreadyTimedInError("You have already timed in today")

        row = self.db.record_time_in(user_id, timestamp=now)
        logger.info(f"Time in recorded for user {user_id} at {now:%H:%M:%S}")
        return row

    def time_out(self, user_id, descriptor, is_overtime=False, now=None):
        now = now or datetime.now()
        self.face_service.require_match(user_id, descriptor)

        existing = self.db.get_attendance(user_id, now.date())
        if not existing or not existing.get('time_in'):
            logger.warning(f"User {user_id} has not timed in on {now.date()}")
            raise NotTimedInError("Please time in first before timing out")

        if existing.get('time_out'):
            logger.warning(f"User {user_id} already timed out on {now.date()}")
            raise AlreadyTimedOutError("You have already timed out today")

        row = self.db.record_time_out(existing['id'], is_overtime=is_overtime, timestamp=now)
        logger.info(f"Time out recorded for user {user_id} at {now:%H:%M:%S} (overtime={is_overtime})")
        return row

    def today(self, user_id, today=None):
        return self.db.get_attendance(user_id, today or date.today())

    def monthly(self, user_id, year, month):
        return self.db.get_monthly_attendance(user_id, year, month)

    def history(self, user_id):
        return self.db.get_attendance_history(user_id)

    def total_hours(self, user_id) -> float:
        total = 0.0
        for row in self.db.get_completed_attendance(user_id):
            try:
                total += hours_worked(row['time_in'], row['time_out'])
            except (TypeError, ValueError, IndexError) as e:
                logger.error(f"Error calculating hours for attendance {row.get('id')}: {e}")
        return round(total, 2)

    def ojt_progress(self, user_id) -> dict:
        total = self.total_hours(user_id)
        info = self.db.get_ojt_info(user_id) or {}
        required = float(info.get('ojt_total_hours') or self.default_total_hours)
        remaining = max(required - total, 0.0)
        percent = min(total / required * 100, 100.0) if required > 0 else 0.0
        return {
            'total_hours': total,
            'required_hours': round(required, 2),
            'remaining_hours': round(remaining, 2),
            'percent': round(percent, 1),
        }
