"""
Database configuration re-exports.
Models import ``Base`` from here.
"""

from app.core.database_manager import Base

__all__ = ["Base"]
