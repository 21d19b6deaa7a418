from fchat.database.sqlite_client import SQLiteClient
from fchat.database.schema import SCHEMA

__all__ = ["SQLiteClient", "SCHEMA"]
