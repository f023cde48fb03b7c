from boutique.database.base import Base
from boutique.database.engine import build_engine, engine
from boutique.database.session import SessionLocal, build_sessionmaker

__all__ = ["Base", "SessionLocal", "build_engine", "build_sessionmaker", "engine"]
