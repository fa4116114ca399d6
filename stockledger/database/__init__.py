from stockledger.database.base import Base
from stockledger.database.engine import build_engine, create_schema, engine
from stockledger.database.session import SessionLocal, build_session_factory

__all__ = ["Base", "SessionLocal", "build_engine", "build_session_factory", "create_schema", "engine"]
