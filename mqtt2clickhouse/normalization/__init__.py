# ==============================================
# STAGE 1: NORMALIZATION
# ==============================================
#
# This package turns an inbound (topic, payload) pair into a
# typed Record BEFORE anything touches the store.
#
# Modules:
# --------
# - topic.py          → Validate and split "/client/device/.../sensor"
# - identifier.py     → Allow-list and quoting for SQL identifiers
# - type_detector.py  → Map payload values onto String / Int / Float64
# - record_builder.py → Build the immutable Record
#
# ==============================================

from .topic import Topic, parse_topic, check_topic
from .identifier import is_valid_identifier, validate_identifier, quote_identifier
from .type_detector import TypeDetector
from .record_builder import RecordBuilder, build_record

__all__ = [
    "Topic",
    "parse_topic",
    "check_topic",
    "is_valid_identifier",
    "validate_identifier",
    "quote_identifier",
    "TypeDetector",
    "RecordBuilder",
    "build_record",
]
