# file: portaal/db/session.py

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from portaal.core.settings import settings


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Cria o engine. SQLite em memória precisa de StaticPool para
    compartilhar a mesma conexão entre threads (TestClient, seed).
    """
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or database_url.rstrip("/") == "sqlite:":
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, echo=echo, **kwargs)

    return create_engine(database_url, echo=echo, pool_pre_ping=True)


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


# Engine oficial (migrações / seed). None em modo demo
engine = build_engine(settings.DATABASE_URL, settings.DATABASE_ECHO) if settings.database_configured else None
SessionLocal = build_session_factory(engine) if engine is not None else None
