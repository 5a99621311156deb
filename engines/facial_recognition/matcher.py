"""
Face Matcher — Euclidean distance matching for browser-captured face descriptors.
Decides whether a live descriptor belongs to one enrolled user (verify, 1-to-1)
or which enrolled user it belongs to (identify, 1-to-N).
"""

import json
import logging
import math
import numbers
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Tuple

import numpy as np

logger = logging.getLogger(__name__)

# Returned by distance() for unequal lengths under the sentinel policy
MISMATCH_DISTANCE = 999.0


class FaceMatchError(ValueError):
    """Base class for descriptor comparison errors."""
    code = 'face_match_error'


class InvalidInput(FaceMatchError):
    """Descriptor is empty, missing, or contains non-numeric elements."""
    code = 'invalid_input'


class DimensionMismatch(FaceMatchError):
    """Descriptors of unequal length were compared under the strict policy."""
    code = 'dimension_mismatch'

    def __init__(self, expected: int, actual: int):
        super().__init__(f"Descriptor dimensions do not match: {expected} vs {actual}")
        self.expected = expected
        self.actual = actual


class MatchReason(str, Enum):
    MATCHED = 'matched'
    ABOVE_THRESHOLD = 'above_threshold'
    DIMENSION_MISMATCH = 'dimension_mismatch'
    NO_CANDIDATES = 'no_candidates'


class MismatchPolicy(str, Enum):
    """What distance() does with descriptors of unequal length."""
    STRICT = 'strict'
    SENTINEL = 'sentinel'


class IdentifyStrategy(str, Enum):
    """How identify() picks among several candidates within threshold."""
    FIRST = 'first'
    BEST = 'best'


@dataclass
class MatchResult:
    """Result of comparing a live descriptor against enrolled ones."""
    distance: float
    is_match: bool
    reason: MatchReason
    matched_id: Optional[object] = None

    def to_dict(self) -> dict:
        # JSON has no infinity / NaN
        distance = round(self.distance, 4) if math.isfinite(self.distance) else None
        return {
            'distance': distance,
            'matched': self.is_match,
            'reason': self.reason.value,
            'matched_id': self.matched_id,
        }


def to_descriptor(value) -> np.ndarray:
    """
    Convert a descriptor payload into a 1-d float64 array.

    Args:
        value: list/tuple of numbers, 1-d numpy array, or JSON string of a list

    Raises:
        InvalidInput: if the payload is empty, None, nested, or non-numeric
    """
    if value is None:
        raise InvalidInput("Descriptor is missing")

    if isinstance(value, (str, bytes)):
        try:
            value = json.loads(value)
        except ValueError:
            raise InvalidInput("Descriptor is not valid JSON")

    if isinstance(value, np.ndarray):
        if value.ndim != 1 or value.dtype.kind not in 'fiu':
            raise InvalidInput(f"Descriptor must be a 1-d numeric array, got {value.dtype} {value.shape}")
        arr = value.astype(np.float64)
    elif isinstance(value, (list, tuple)):
        for i, v in enumerate(value):
            if isinstance(v, bool) or not isinstance(v, numbers.Real):
                raise InvalidInput(f"Descriptor element {i} is not a number: {v!r}")
        arr = np.array(value, dtype=np.float64)
    else:
        raise InvalidInput(f"Unsupported descriptor type: {type(value).__name__}")

    if arr.size == 0:
        raise InvalidInput("Descriptor is empty")
    return arr


def _check_threshold(threshold) -> float:
    if isinstance(threshold, bool) or not isinstance(threshold, numbers.Real):
        raise InvalidInput(f"Threshold must be a number, got {threshold!r}")
    threshold = float(threshold)
    if math.isnan(threshold) or threshold < 0:
        raise InvalidInput(f"Threshold must be non-negative, got {threshold}")
    return threshold


def distance(a, b, policy: MismatchPolicy = MismatchPolicy.STRICT) -> float:
    """Euclidean distance between two descriptors."""
    a = to_descriptor(a)
    b = to_descriptor(b)
    if a.shape != b.shape:
        if MismatchPolicy(policy) is MismatchPolicy.SENTINEL:
            return MISMATCH_DISTANCE
        raise DimensionMismatch(a.shape[0], b.shape[0])
    return float(np.sqrt(np.sum((a - b) ** 2)))


def verify(candidate, enrolled, threshold: float,
           policy: MismatchPolicy = MismatchPolicy.STRICT) -> MatchResult:
    """
    Confirm that a live descriptor matches one enrolled descriptor.

    Raises:
        InvalidInput: malformed descriptor or threshold
        DimensionMismatch: unequal lengths under the strict policy
    """
    threshold = _check_threshold(threshold)
    a = to_descriptor(candidate)
    b = to_descriptor(enrolled)

    if a.shape != b.shape and MismatchPolicy(policy) is MismatchPolicy.SENTINEL:
        return MatchResult(MISMATCH_DISTANCE, False, MatchReason.DIMENSION_MISMATCH)

    dist = distance(a, b, policy)
    if dist <= threshold:
        return MatchResult(dist, True, MatchReason.MATCHED)
    # NaN compares false above, so it lands here too
    return MatchResult(dist, False, MatchReason.ABOVE_THRESHOLD)


def identify(candidate, enrolled: Iterable[Tuple[object, object]], threshold: float,
             policy: MismatchPolicy = MismatchPolicy.STRICT,
             strategy: IdentifyStrategy = IdentifyStrategy.FIRST) -> MatchResult:
    """
    Find which enrolled identity a live descriptor belongs to.

    Scans ``(id, descriptor)`` pairs in the order given. With the FIRST strategy
    the first candidate within threshold wins; with BEST the closest one does
    (earliest on ties). Under the sentinel policy, descriptors of a different
    length are skipped.

    Returns:
        MatchResult with matched_id set on a match. On no match, distance is the
        closest distance seen (inf when nothing was comparable).
    """
    threshold = _check_threshold(threshold)
    strategy = IdentifyStrategy(strategy)
    sentinel = MismatchPolicy(policy) is MismatchPolicy.SENTINEL
    query = to_descriptor(candidate)

    best_id = None
    best_dist = math.inf
    compared = 0

    for enrolled_id, descriptor in enrolled:
        known = to_descriptor(descriptor)
        if known.shape != query.shape:
            if sentinel:
                logger.debug(f"identify: skipping {enrolled_id}, dimension {known.shape[0]} != {query.shape[0]}")
                continue
            raise DimensionMismatch(query.shape[0], known.shape[0])

        compared += 1
        dist = distance(query, known)
        if math.isnan(dist):
            continue

        if dist <= threshold and strategy is IdentifyStrategy.FIRST:
            return MatchResult(dist, True, MatchReason.MATCHED, matched_id=enrolled_id)

        if dist < best_dist:
            best_dist = dist
            best_id = enrolled_id

    if compared == 0:
        return MatchResult(math.inf, False, MatchReason.NO_CANDIDATES)

    if best_id is not None and best_dist <= threshold:
        return MatchResult(best_dist, True, MatchReason.MATCHED, matched_id=best_id)

    return MatchResult(best_dist, False, MatchReason.ABOVE_THRESHOLD)


class FaceMatcher:
    """
    Compares face descriptors using Euclidean distance against a threshold.

    Holds the configured threshold, mismatch policy and identify strategy so the
    application sets them in one place. Every method accepts an explicit
    ``threshold`` that overrides the configured one for that call.

    Stateless between calls; safe for concurrent use.
    """

    def __init__(self, threshold: float,
                 mismatch_policy: MismatchPolicy = MismatchPolicy.STRICT,
                 identify_strategy: IdentifyStrategy = IdentifyStrategy.FIRST):
        self.threshold = _check_threshold(threshold)
        self.mismatch_policy = MismatchPolicy(mismatch_policy)
        self.identify_strategy = IdentifyStrategy(identify_strategy)

    def distance(self, a, b) -> float:
        return distance(a, b, self.mismatch_policy)

    def verify(self, candidate, enrolled, threshold: Optional[float] = None) -> MatchResult:
        if threshold is None:
            threshold = self.threshold
        return verify(candidate, enrolled, threshold, self.mismatch_policy)

    def identify(self, candidate, enrolled, threshold: Optional[float] = None) -> MatchResult:
        if threshold is None:
            threshold = self.threshold
        return identify(candidate, enrolled, threshold,
                        self.mismatch_policy, self.identify_strategy)

    def get_stats(self) -> dict:
        return {
            'threshold': self.threshold,
            'mismatch_policy': self.mismatch_policy.value,
            'identify_strategy': self.identify_strategy.value,
        }
