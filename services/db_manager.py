"""
Database Manager for OJT Tracker
Handles all database operations using psycopg2
"""

import psycopg2
import psycopg2.extras
import json
import logging
from datetime import datetime

logger = logging.getLogger(__name__)

class DBManager:
    def __init__(self, database_url):
        """Initialize database connection"""
        self.database_url = database_url
        self.conn = None
        self.connect()

    def connect(self):
        """Establish database connection"""
        try:
            self.conn = psycopg2.connect(self.database_url)
            logger.info("Database connection established")
        except Exception as e:
            logger.error(f"Database connection failed: {e}")
            raise

    def close(self):
        """Close database connection"""
        if self.conn:
            self.conn.close()
            logger.info("Database connection closed")

    def execute_query(self, query, params=None, fetch=True, commit=False):
        """Execute a database query"""
        try:
            with self.conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cursor:
                cursor.execute(query, params)

                if commit:
                    self.conn.commit()

                if fetch:
                    return cursor.fetchall()
                return None

        except Exception as e:
            self.conn.rollback()
            logger.error(f"Database error: {e}")
            raise

    def ping(self):
        """Check that the connection can run a query"""
        self.execute_query("SELECT 1 AS ok")
        return True

    # ==================== USER OPERATIONS ====================

    def get_user_by_id(self, user_id):
        """Get user by ID"""
        query = """
            SELECT id, name, email, ojt_start_date, ojt_end_date, ojt_total_hours, created_at
            FROM users
            WHERE id = %s
        """
        results = self.execute_query(query, (user_id,))
        return results[0] if results else None

    def get_user_by_email(self, email):
        """Get user by email, including the password hash (login only)"""
        query = "SELECT * FROM users WHERE LOWER(email) = LOWER(%s)"
        results = self.execute_query(query, (email,))
        return results[0] if results else None

    def create_user(self, name, email, password_hash, ojt_total_hours=160):
        """Add new user"""
        query = """
            INSERT INTO users (name, email, password_hash, ojt_total_hours)
            VALUES (%s, %s, %s, %s)
            RETURNING id
        """
        result = self.execute_query(
            query,
            (name, email, password_hash, ojt_total_hours),
            commit=True
        )
        return result[0]['id'] if result else None

    def get_ojt_info(self, user_id):
        """Get OJT dates and required hours"""
        query = """
            SELECT ojt_start_date, ojt_end_date, ojt_total_hours
            FROM users
            WHERE id = %s
        """
        results = self.execute_query(query, (user_id,))
        return results[0] if results else None

    def update_ojt_info(self, user_id, **kwargs):
        """Update OJT information"""
        allowed_fields = ['ojt_start_date', 'ojt_end_date', 'ojt_total_hours']
        updates = []
        params = []

        for field, value in kwargs.items():
            if field in allowed_fields:
                updates.append(f"{field} = %s")
                params.append(value)

        if not updates:
            return False

        params.append(user_id)
        query = f"UPDATE users SET {', '.join(updates)} WHERE id = %s"
        self.execute_query(query, params, fetch=False, commit=True)
        return True

    # ==================== FACE RECORD OPERATIONS ====================

    def get_face_record(self, user_id):
        """Get the user's active face record"""
        query = """
            SELECT * FROM facial_recognitions
            WHERE user_id = %s AND is_active = TRUE
        """
        results = self.execute_query(query, (user_id,))
        return results[0] if results else None

    def get_face_record_by_hash(self, encoding_hash):
        """Get face record by descriptor hash"""
        query = "SELECT * FROM facial_recognitions WHERE encoding_hash = %s"
        results = self.execute_query(query, (encoding_hash,))
        return results[0] if results else None

    def get_active_face_records(self):
        """Get all active face records, oldest registration first"""
        query = """
            SELECT user_id, encoding FROM facial_recognitions
            WHERE is_active = TRUE
            ORDER BY id ASC
        """
        return self.execute_query(query)

    def upsert_face_record(self, user_id, encoding, encoding_hash):
        """Create or replace the user's face record"""
        query = """
            INSERT INTO facial_recognitions
                (user_id, encoding, encoding_hash, registered_at, last_verified_at, is_active)
            VALUES (%s, %s, %s, NOW(), NOW(), TRUE)
            ON CONFLICT (user_id) DO UPDATE SET
                encoding = EXCLUDED.encoding,
                encoding_hash = EXCLUDED.encoding_hash,
                registered_at = NOW(),
                last_verified_at = NOW(),
                is_active = TRUE,
                updated_at = NOW()
            RETURNING id
        """
        encoding_json = encoding if isinstance(encoding, str) else json.dumps(encoding)
        result = self.execute_query(
            query,
            (user_id, encoding_json, encoding_hash),
            commit=True
        )
        return result[0]['id'] if result else None

    def delete_face_record(self, user_id):
        """Remove the user's face record"""
        query = "DELETE FROM facial_recognitions WHERE user_id = %s"
        self.execute_query(query, (user_id,), fetch=False, commit=True)
        return True

    def touch_face_verified(self, user_id):
        """Stamp a successful verification"""
        query = "UPDATE facial_recognitions SET last_verified_at = NOW() WHERE user_id = %s"
        self.execute_query(query, (user_id,), fetch=False, commit=True)

    # ==================== ATTENDANCE OPERATIONS ====================

    def get_attendance(self, user_id, attendance_date):
        """Get the user's attendance row for a date"""
        query = """
            SELECT * FROM attendances
            WHERE user_id = %s AND attendance_date = %s
        """
        results = self.execute_query(query, (user_id, attendance_date))
        return results[0] if results else None

    def record_time_in(self, user_id, timestamp=None):
        """Create or update today's row with a time-in"""
        if timestamp is None:
            timestamp = datetime.now()

        query = """
            INSERT INTO attendances
                (user_id, attendance_date, time_in, time_in_at, verification_method)
            VALUES (%s, %s, %s, %s, 'facial')
            ON CONFLICT (user_id, attendance_date) DO UPDATE SET
                time_in = EXCLUDED.time_in,
                time_in_at = EXCLUDED.time_in_at,
                verification_method = EXCLUDED.verification_method
            RETURNING *
        """
        result = self.execute_query(
            query,
            (user_id, timestamp.date(), timestamp.time().replace(microsecond=0), timestamp),
            commit=True
        )
        return result[0] if result else None

    def record_time_out(self, attendance_id, is_overtime=False, timestamp=None):
        """Set time-out on an existing row"""
        if timestamp is None:
            timestamp = datetime.now()

        query = """
            UPDATE attendances SET
                time_out = %s,
                time_out_at = %s,
                is_overtime = %s,
                verification_method = 'facial'
            WHERE id = %s
            RETURNING *
        """
        result = self.execute_query(
            query,
            (timestamp.time().replace(microsecond=0), timestamp, is_overtime, attendance_id),
            commit=True
        )
        return result[0] if result else None

    def add_attendance(self, user_id, time_in_at, time_out_at, is_overtime=False, notes=None):
        """Insert a complete row (seeding / manual entry)"""
        query = """
            INSERT INTO attendances
                (user_id, attendance_date, time_in, time_out, time_in_at, time_out_at,
                 is_overtime, verification_method, notes)
            VALUES (%s, %s, %s, %s, %s, %s, %s, 'facial', %s)
            RETURNING id
        """
        result = self.execute_query(
            query,
            (user_id, time_in_at.date(), time_in_at.time(), time_out_at.time(),
             time_in_at, time_out_at, is_overtime, notes),
            commit=True
        )
        return result[0]['id'] if result else None

    def get_monthly_attendance(self, user_id, year, month):
        """Get the user's rows for one calendar month"""
        query = """
            SELECT * FROM attendances
            WHERE user_id = %s
            AND EXTRACT(YEAR FROM attendance_date) = %s
            AND EXTRACT(MONTH FROM attendance_date) = %s
            ORDER BY attendance_date ASC
        """
        return self.execute_query(query, (user_id, year, month))

    def get_attendance_history(self, user_id, limit=1000):
        """Get all of the user's rows, newest first"""
        query = """
            SELECT * FROM attendances
            WHERE user_id = %s
            ORDER BY attendance_date DESC
            LIMIT %s
        """
        return self.execute_query(query, (user_id, limit))

    def get_completed_attendance(self, user_id):
        """Get rows that have both a time-in and a time-out"""
        query = """
            SELECT id, attendance_date, time_in, time_out FROM attendances
            WHERE user_id = %s
            AND time_in IS NOT NULL
            AND time_out IS NOT NULL
        """
        return self.execute_query(query, (user_id,))
