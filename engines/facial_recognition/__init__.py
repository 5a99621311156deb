"""
Facial Recognition Engine
Compares browser-captured face descriptors and guards concurrent captures.
Descriptors are produced client-side; nothing here touches pixels.

Usage:
    from engines.facial_recognition import FaceMatcher

    matcher = FaceMatcher(threshold=0.45)
    result = matcher.verify(live_descriptor, enrolled_descriptor)
"""

from engines.facial_recognition.matcher import (
    FaceMatcher, MatchResult, MatchReason, MismatchPolicy, IdentifyStrategy,
    FaceMatchError, InvalidInput, DimensionMismatch, MISMATCH_DISTANCE,
    distance, verify, identify, to_descriptor,
)
from engines.facial_recognition.capture import (
    CaptureRegistry, CaptureSession, CaptureState, CaptureInProgress, InvalidTransition,
)

__all__ = [
    'FaceMatcher', 'MatchResult', 'MatchReason', 'MismatchPolicy', 'IdentifyStrategy',
    'FaceMatchError', 'InvalidInput', 'DimensionMismatch', 'MISMATCH_DISTANCE',
    'distance', 'verify', 'identify', 'to_descriptor',
    'CaptureRegistry', 'CaptureSession', 'CaptureState', 'CaptureInProgress', 'InvalidTransition',
]
