"""
Persistence layer: SQLAlchemy models, stores and the process-wide DBStorage.

`storage` is used by the HTTP layer; services receive a session or a store explicitly.
"""
from models.db_storage import DBStorage

storage = DBStorage()
storage.reload()
