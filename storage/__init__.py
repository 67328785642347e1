"""
Storage Package.

Persistence for the journal.

Modules:
- models/: SQLAlchemy ORM models
- repositories/: Data access layer
"""
