"""SQLAlchemy adapter – async list-query source."""
from pageable.adapters.sqlalchemy.source import SqlAlchemyQuerySource

__all__ = ["SqlAlchemyQuerySource"]
