# file: portaal/core/errors.py

"""
Taxonomia de erros do portal.

- NotConfiguredError: não há credenciais de banco (modo demo)
- NotSetUpError: credenciais existem, mas o schema/tabelas não
- OperationFailedError: qualquer outra falha

Leituras engolem erros e devolvem vazio; escritas de entidades
principais (dealer, mensagem) propagam estes erros até a API.
"""

NOT_SETUP_MESSAGE_PATTERNS = (
    ("relation", "does not exist"),
    ("table", "does not exist"),
    ("no such table",),
    ("permission denied",),
    ("jwt",),
    ("invalid api key",),
    ("row-level security",),
    ("policy",),
    ("connection",),
    ("timeout",),
)

NOT_SETUP_CODES = {
    "42P01",     # undefined_table
    "42501",     # insufficient_privilege
    "PGRST301",  # jwt malformado
}


class PortaalError(Exception):
    status_code = 500


class NotConfiguredError(PortaalError):
    status_code = 503

    def __init__(self, message: str = "Database not configured"):
        super().__init__(message)


class NotSetUpError(PortaalError):
    status_code = 503

    def __init__(self, message: str = "Database tables not setup. Please run the database setup script."):
        super().__init__(message)


class OperationFailedError(PortaalError):
    status_code = 500


class InvalidInputError(PortaalError):
    status_code = 422


class NotFoundError(PortaalError):
    status_code = 404


class ConflictError(PortaalError):
    status_code = 409


class DealerConflictError(ConflictError):
    def __init__(self, message: str = "A dealer with this email address already exists"):
        super().__init__(message)


class InvalidTransitionError(ConflictError):
    pass


def _error_code(exc: BaseException) -> str | None:
    # psycopg expõe pgcode/sqlstate em exc.orig
    orig = getattr(exc, "orig", None)
    for source in (exc, orig):
        if source is None:
            continue
        for attr in ("pgcode", "sqlstate", "code"):
            value = getattr(source, attr, None)
            if isinstance(value, str) and value:
                return value
    return None


def is_database_not_setup(exc: BaseException | None) -> bool:
    """
    Heurística: o erro indica tabelas ausentes, permissão ou conexão?
    """
    if exc is None:
        return False

    if _error_code(exc) in NOT_SETUP_CODES:
        return True

    message = str(exc).lower()
    return any(
        all(fragment in message for fragment in pattern)
        for pattern in NOT_SETUP_MESSAGE_PATTERNS
    )


def translate_write_error(exc: Exception, action: str) -> PortaalError:
    """
    Converte falhas de escrita em erros com mensagem para o usuário.
    """
    if isinstance(exc, PortaalError):
        return exc
    if is_database_not_setup(exc):
        return NotSetUpError()
    return OperationFailedError(f"Failed to {action}: {exc}")
