"""Infrastructure layer — SQLite schema, engine, store, and repositories.

This layer depends on stdlib, SQLAlchemy, and the domain layer. It must
never import from services, commands, or output.
"""
