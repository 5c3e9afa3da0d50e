"""Database Declarations — SQLAlchemy Base shared by models, migrations and the session manager."""
