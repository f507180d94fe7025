# file: portaal/repositories/__init__.py

import logging
from contextlib import contextmanager
from typing import Iterator

from portaal.core.settings import Settings
from portaal.db.base import Base
from portaal.db.session import build_engine, build_session_factory
from portaal.repositories.base import Repositories
from portaal.repositories.memory import MemoryRepositories, build_demo_repositories
from portaal.repositories.sql import SqlRepositories

logger = logging.getLogger("repositories")

__all__ = [
    "Repositories",
    "MemoryRepositories",
    "SqlRepositories",
    "RepositoryProvider",
    "build_demo_repositories",
]


class RepositoryProvider:
    """
    Escolhe a implementação pela configuração:
    - DATABASE_URL definido → SQLAlchemy (uma sessão por unidade de trabalho)
    - caso contrário → pacote demo em memória, criado por instância
    """

    def __init__(self, settings: Settings, memory: MemoryRepositories | None = None):
        self.engine = None
        self.session_factory = None
        self.memory = memory

        if memory is not None:
            logger.info("[Repos] Usando repositórios em memória injetados")
        elif settings.database_configured:
            self.engine = build_engine(settings.DATABASE_URL, settings.DATABASE_ECHO)
            self.session_factory = build_session_factory(self.engine)
            logger.info("[Repos] Banco configurado, usando SQLAlchemy")
        else:
            self.memory = build_demo_repositories()
            logger.warning("⚠️ [Repos] DATABASE_URL ausente, modo demo em memória")

    @property
    def demo(self) -> bool:
        return self.memory is not None and self.memory.demo

    def create_schema(self):
        """
        Só para SQLite local/testes; Postgres usa as migrações Alembic.
        """
        if self.engine is None:
            return
        from portaal.db import models_registry  # noqa: F401

        Base.metadata.create_all(self.engine)

    @contextmanager
    def open(self) -> Iterator[Repositories]:
        if self.memory is not None:
            yield self.memory
            return

        db = self.session_factory()
        try:
            yield SqlRepositories(db)
        finally:
            db.close()

    def dispose(self):
        if self.engine is not None:
            self.engine.dispose()
