from bson import ObjectId
from bson.errors import InvalidId


def parse_object_id(value) -> ObjectId | None:
    """Return the ObjectId for a 24-hex string (or ObjectId), None when it cannot be one."""
    if isinstance(value, ObjectId):
        return value
    if not value:
        return None
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None
