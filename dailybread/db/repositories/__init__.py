"""
Per-domain repository modules for database access.

Functions take a SQLAlchemy ``Session`` first and commit their own writes
unless called with ``commit=False`` as part of a larger unit of work.
"""
