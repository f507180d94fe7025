from logging.config import fileConfig

from alembic import context

# Importa o engine oficial do projeto
from portaal.core.settings import settings
from portaal.db.session import engine

# Importa Base e o registry (importa todos modelos)
from portaal.db.base import Base
from portaal.db import models_registry  # noqa: F401  necessário para registrar todos os models

# Config do Alembic
config = context.config

# Logging
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Metadata alvo das migrações
target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
    url = settings.DATABASE_URL or config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    if engine is None:
        raise RuntimeError("DATABASE_URL não definido: nada para migrar (modo demo)")

    with engine.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
