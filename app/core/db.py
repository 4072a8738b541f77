"""
Database engine and session setup for local demo mode
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker


def build_engine(database_url: str):
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    return create_engine(database_url, connect_args=connect_args)


def make_session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


Base = declarative_base()
