from sqlalchemy.orm import sessionmaker

from stockledger.database.engine import engine


def build_session_factory(bind) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=bind,
    )


SessionLocal = build_session_factory(engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory() -> sessionmaker:
    return SessionLocal


__all__ = ["SessionLocal", "build_session_factory", "get_db", "get_session_factory"]
