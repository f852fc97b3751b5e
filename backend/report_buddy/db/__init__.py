# backend/report_buddy/db/__init__.py

"""
Database Module

Contains SQLAlchemy models, Pydantic schemas, and database configuration.
"""

from report_buddy.db.database import Base, engine, SessionLocal, get_db
from report_buddy.db import models, schemas

__all__ = [
    'Base',
    'engine',
    'SessionLocal',
    'get_db',
    'models',
    'schemas'
]
