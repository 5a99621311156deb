"""
Face Service — enrollment and verification of browser-captured face descriptors.
Descriptors arrive already extracted (face-api.js in the browser); this service
stores them and runs them through FaceMatcher to gate attendance actions.
"""

import hashlib
import json
import logging

import numpy as np

from engines.facial_recognition.matcher import FaceMatcher, InvalidInput, MatchResult, to_descriptor

logger = logging.getLogger(__name__)


class NotEnrolledError(LookupError):
    """The user has no active face record to compare against."""
    code = 'not_enrolled'


class DuplicateFaceError(ValueError):
    """The descriptor is already registered to another account."""
    code = 'duplicate_face'


class FaceMismatchError(Exception):
    """A comparison was made and the face did not match."""
    code = 'above_threshold'

    def __init__(self, result: MatchResult):
        super().__init__("Face did not match the registered face")
        self.result = result


def descriptor_hash(descriptor) -> str:
    """SHA-256 of the descriptor's canonical JSON form."""
    values = to_descriptor(descriptor).tolist()
    canonical = json.dumps(values, separators=(',', ':'))
    return hashlib.sha256(canonical.encode('utf-8')).hexdigest()


class FaceService:
    """Face enrollment and verification backed by the database."""

    def __init__(self, db_manager, matcher: FaceMatcher):
        """
        Args:
            db_manager: DBManager instance for face record lookups
            matcher: configured FaceMatcher (threshold, mismatch policy, strategy)
        """
        self.db = db_manager
        self.matcher = matcher

    @property
    def threshold(self) -> float:
        return self.matcher.threshold

    def check_registrable(self, descriptor, user_id=None):
        """
        Validate a descriptor for enrollment without storing it.

        With no user_id (a signup) any existing owner of the descriptor is a
        conflict. Returns (values, encoding_hash).

        Raises:
            InvalidInput: malformed descriptor or one holding NaN / infinity
            DuplicateFaceError: identical descriptor already belongs to another user
        """
        arr = to_descriptor(descriptor)
        if not np.isfinite(arr).all():
            raise InvalidInput("Descriptor contains NaN or infinite values")
        values = arr.tolist()
        encoding_hash = descriptor_hash(values)

        existing = self.db.get_face_record_by_hash(encoding_hash)
        if existing and existing['user_id'] != user_id:
            logger.warning(f"Duplicate face registration attempt by user {user_id} "
                           f"(owned by user {existing['user_id']})")
            raise DuplicateFaceError("This facial data is already registered to another account.")
        return values, encoding_hash

    def register(self, user_id, descriptor) -> dict:
        """
        Store a descriptor as the user's face record, replacing any previous one.

        Raises:
            InvalidInput: malformed descriptor
            DuplicateFaceError: identical descriptor already belongs to another user
        """
        values, encoding_hash = self.check_registrable(descriptor, user_id)

        record_id = self.db.upsert_face_record(user_id, json.dumps(values), encoding_hash)
        logger.info(f"Stored {len(values)}-d face descriptor for user {user_id} (record {record_id})")
        return {'id': record_id, 'dimensions': len(values)}

    def verify_user(self, user_id, descriptor) -> MatchResult:
        """
        Compare a live descriptor with the user's enrolled one (1-to-1).

        Returns the MatchResult whether or not it matched.

        Raises:
            NotEnrolledError: user has no active face record
            InvalidInput / DimensionMismatch: malformed or incomparable descriptors
        """
        record = self.db.get_face_record(user_id)
        if not record:
            logger.warning(f"No face record for user {user_id}")
            raise NotEnrolledError(f"No face registered for user {user_id}")

        result = self.matcher.verify(descriptor, record['encoding'])
        if result.is_match:
            self.db.touch_face_verified(user_id)
            logger.info(f"Face verification PASSED for user {user_id}: "
                        f"distance {result.distance:.4f} (threshold {self.threshold})")
        else:
            logger.warning(f"Face verification FAILED for user {user_id}: "
                           f"distance {result.distance:.4f} (threshold {self.threshold}, "
                           f"reason {result.reason.value})")
        return result

    def require_match(self, user_id, descriptor) -> MatchResult:
        """verify_user, raising FaceMismatchError on a non-match."""
        result = self.verify_user(user_id, descriptor)
        if not result.is_match:
            raise FaceMismatchError(result)
        return result

    def identify(self, descriptor) -> MatchResult:
        """Find which enrolled user a live descriptor belongs to (1-to-N)."""
        records = self.db.get_active_face_records()
        pairs = ((r['user_id'], r['encoding']) for r in records)
        result = self.matcher.identify(descriptor, pairs)

        if result.is_match:
            logger.info(f"Face identified as user {result.matched_id} "
                        f"(distance {result.distance:.4f}, {len(records)} enrolled)")
        else:
            logger.info(f"No enrolled face matched ({len(records)} enrolled, "
                        f"reason {result.reason.value})")
        return result

    def disable(self, user_id) -> None:
        self.db.delete_face_record(user_id)
        logger.info(f"Face recognition disabled for user {user_id}")

    def status(self, user_id) -> dict:
        record = self.db.get_face_record(user_id)
        registered_at = record.get('registered_at') if record else None
        return {
            'enabled': record is not None,
            'registered_at': registered_at.isoformat() if registered_at else None,
        }

    def get_stats(self) -> dict:
        return self.matcher.get_stats()
