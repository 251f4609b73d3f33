"""
Database module - MongoDB connection and collections.
"""
from app.db.mongodb import get_db, get_mongo_db, init_mongo_indexes, test_mongo_connection

__all__ = [
    "get_db",
    "get_mongo_db",
    "init_mongo_indexes",
    "test_mongo_connection"
]
