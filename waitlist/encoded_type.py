"""JSON-encoded string list column type for SQLAlchemy."""
import json

from sqlalchemy import Text
from sqlalchemy.types import TypeDecorator


class EncodedStringList(TypeDecorator):
    """Ordered list of strings stored as a JSON array in a text column.

    Rows written before the column existed hold an empty string (the default
    added by the schema upgrade); those read back as an empty list.
    """

    impl = Text
    cache_ok = True

    def process_bind_param(self, value, dialect):
        """Encode the list before storing in database."""
        if value is None:
            return "[]"
        if isinstance(value, (str, bytes)) or not isinstance(value, (list, tuple)):
            raise TypeError(f"EncodedStringList requires a list of strings, got {type(value)}")
        return json.dumps([str(item) for item in value])

    def process_result_value(self, value, dialect):
        """Decode the stored array when reading from database."""
        if not value:
            return []
        decoded = json.loads(value)
        if not isinstance(decoded, list):
            return []
        return [str(item) for item in decoded]
