"""Shared utility functions.

new_id:  opaque identifier for every persisted record
utcnow:  timezone-aware timestamp used for created_at / updated_at
"""
import uuid
from datetime import datetime, timezone


def new_id():
    """Generate a new UUID4 string for primary keys."""
    return str(uuid.uuid4())


def utcnow():
    return datetime.now(timezone.utc)
