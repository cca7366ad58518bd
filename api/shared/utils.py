"""Common utility functions."""
from typing import Optional
from uuid import UUID


def is_valid_uuid(uuid_string: Optional[str]) -> bool:
    """Check if string is valid UUID."""
    if not uuid_string:
        return False
    try:
        UUID(str(uuid_string))
        return True
    except ValueError:
        return False

