"""
SQLite Engine - Transactional execution wrapper for SQLite

Serializes access to a file-backed SQLite database through a single pooled
connection, wraps every unit of work in commit/rollback, and materializes
result rows into a typed, serializable value model.
"""

__version__ = "0.1.0"
__author__ = "Systems Engineering Portfolio"
