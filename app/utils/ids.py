from typing import Optional, Union
from uuid import UUID


def parse_uuid(value: Union[str, UUID, None]) -> Optional[UUID]:
    """Path ids arrive as text; a malformed id simply matches nothing."""
    if value is None or isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        return None
