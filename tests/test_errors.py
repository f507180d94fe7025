import pytest

from portaal.core.errors import (
    NotSetUpError,
    OperationFailedError,
    DealerConflictError,
    is_database_not_setup,
    translate_write_error,
)
from portaal.core.settings import PLACEHOLDER_DATABASE_URL, Settings


class CodedError(Exception):
    def __init__(self, message, pgcode):
        super().__init__(message)
        self.pgcode = pgcode


class WrappedError(Exception):
    def __init__(self, orig):
        super().__init__("wrapped")
        self.orig = orig


@pytest.mark.parametrize(
    "exc",
    [
        RuntimeError('relation "public.dealers" does not exist'),
        RuntimeError("(sqlite3.OperationalError) no such table: messages"),
        RuntimeError("permission denied for table dealers"),
        RuntimeError("JWT expired"),
        RuntimeError("Invalid API key"),
        RuntimeError("new row violates row-level security policy"),
        RuntimeError("could not open connection to server"),
        CodedError("boom", "42P01"),
        WrappedError(CodedError("boom", "42501")),
        CodedError("boom", "PGRST301"),
    ],
)
def test_not_setup_errors(exc):
    assert is_database_not_setup(exc) is True


@pytest.mark.parametrize("exc", [None, RuntimeError("disk full"), CodedError("dup", "23505")])
def test_other_errors(exc):
    assert is_database_not_setup(exc) is False


def test_translate_write_error():
    assert isinstance(translate_write_error(RuntimeError("no such table: x"), "send message"), NotSetUpError)

    failed = translate_write_error(RuntimeError("disk full"), "send message")
    assert isinstance(failed, OperationFailedError)
    assert str(failed) == "Failed to send message: disk full"

    conflict = DealerConflictError()
    assert translate_write_error(conflict, "create dealer") is conflict


def test_placeholder_database_url_means_demo():
    assert Settings(_env_file=None).demo_mode is True
    assert Settings(_env_file=None, DATABASE_URL=PLACEHOLDER_DATABASE_URL).demo_mode is True
    assert Settings(_env_file=None, DATABASE_URL="sqlite://").demo_mode is False
