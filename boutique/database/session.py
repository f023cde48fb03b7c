from sqlalchemy.orm import sessionmaker

from boutique.database.engine import engine


def build_sessionmaker(bind):
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=bind,
    )


SessionLocal = build_sessionmaker(engine)
