from datetime import timedelta

import pytest

from portaal.core.errors import NotConfiguredError, NotSetUpError, OperationFailedError
from portaal.services import chat_service, messages_service
from portaal.utils.clock import utcnow
from tests.conftest import make_dealer


def _set_timestamp(repos, message, ts):
    repos.store.messages[message.id] = message.model_copy(update={"timestamp": ts})


class FailingMessages:
    def __init__(self, error):
        self.error = error

    def __getattr__(self, name):
        def fail(*args, **kwargs):
            raise self.error
        return fail


@pytest.fixture
def pair(repos):
    return make_dealer(repos, name="Alice"), make_dealer(repos, name="Bob")


# ============================================================
# messages_service
# ============================================================

def test_send_message_trims_text(repos, pair):
    alice, bob = pair

    message = messages_service.send_message(repos, alice.id, bob.id, "  hallo  ")

    assert message.message == "hallo"
    assert message.read is False
    assert message.timestamp is not None


@pytest.mark.parametrize("text", ["", "   ", "\n\t"])
def test_send_empty_message_is_noop(repos, pair, text):
    alice, bob = pair

    assert messages_service.send_message(repos, alice.id, bob.id, text) is None
    assert messages_service.get_conversation(repos, alice.id, bob.id) == []


def test_send_empty_message_in_demo_is_still_noop(demo_repos):
    assert messages_service.send_message(demo_repos, "demo-dealer", "demo-admin", "  ") is None


def test_send_message_in_demo_raises(demo_repos):
    with pytest.raises(NotConfiguredError):
        messages_service.send_message(demo_repos, "demo-dealer", "demo-admin", "hoi")


def test_send_message_missing_tables(repos, pair):
    alice, bob = pair
    repos.messages = FailingMessages(RuntimeError('relation "messages" does not exist'))

    with pytest.raises(NotSetUpError):
        messages_service.send_message(repos, alice.id, bob.id, "hoi")


def test_send_message_other_failure(repos, pair):
    alice, bob = pair
    repos.messages = FailingMessages(RuntimeError("disk full"))

    with pytest.raises(OperationFailedError, match="Failed to send message"):
        messages_service.send_message(repos, alice.id, bob.id, "hoi")


def test_read_failures_return_empty(repos, pair):
    alice, bob = pair
    repos.messages = FailingMessages(RuntimeError("boom"))

    assert messages_service.get_conversation(repos, alice.id, bob.id) == []
    assert messages_service.get_unread_count(repos, alice.id, bob.id) == 0
    assert messages_service.get_last_message(repos, alice.id, bob.id) is None
    assert messages_service.mark_as_read(repos, ["x"]) == []


def test_conversation_is_chronological_and_scoped(repos, pair):
    alice, bob = pair
    carol = make_dealer(repos, name="Carol")
    now = utcnow()

    second = messages_service.send_message(repos, bob.id, alice.id, "second")
    first = messages_service.send_message(repos, alice.id, bob.id, "first")
    messages_service.send_message(repos, alice.id, carol.id, "other pair")
    _set_timestamp(repos, first, now - timedelta(minutes=2))
    _set_timestamp(repos, second, now - timedelta(minutes=1))

    history = messages_service.get_conversation(repos, alice.id, bob.id)

    assert [m.message for m in history] == ["first", "second"]
    assert messages_service.get_last_message(repos, bob.id, alice.id).id == second.id


def test_mark_as_read_only_given_ids(repos, pair):
    alice, bob = pair
    m1 = messages_service.send_message(repos, bob.id, alice.id, "een")
    m2 = messages_service.send_message(repos, bob.id, alice.id, "twee")
    m3 = messages_service.send_message(repos, bob.id, alice.id, "drie")

    changed = messages_service.mark_as_read(repos, [m1.id, m3.id])

    assert {m.id for m in changed} == {m1.id, m3.id}
    read = {m.id: m.read for m in messages_service.get_conversation(repos, alice.id, bob.id)}
    assert read == {m1.id: True, m2.id: False, m3.id: True}


def test_mark_as_read_empty_list(repos):
    assert messages_service.mark_as_read(repos, []) == []


def test_unread_count_is_directional(repos, pair):
    alice, bob = pair
    messages_service.send_message(repos, bob.id, alice.id, "een")
    messages_service.send_message(repos, bob.id, alice.id, "twee")
    messages_service.send_message(repos, alice.id, bob.id, "terug")

    assert messages_service.get_unread_count(repos, alice.id, bob.id) == 2
    assert messages_service.get_unread_count(repos, bob.id, alice.id) == 1


# ============================================================
# chat_service
# ============================================================

def test_mark_conversation_as_read_logs_action(repos, pair):
    alice, bob = pair
    messages_service.send_message(repos, bob.id, alice.id, "een")
    messages_service.send_message(repos, alice.id, bob.id, "mine")

    changed = chat_service.mark_conversation_as_read(repos, alice.id, bob.id)

    assert len(changed) == 1
    assert messages_service.get_unread_count(repos, alice.id, bob.id) == 0
    assert messages_service.get_unread_count(repos, bob.id, alice.id) == 1
    assert repos.store.chat_logs[-1]["action"] == "message_read"


def test_send_message_logs_first_contact(repos, pair):
    alice, bob = pair

    chat_service.send_message(repos, alice.id, bob.id, "hoi")
    chat_service.send_message(repos, alice.id, bob.id, "nog een")

    actions = [log["action"] for log in repos.store.chat_logs]
    assert actions == ["conversation_started", "message_sent", "message_sent"]


def test_log_chat_action_ignores_unknown(repos):
    chat_service.log_chat_action(repos, "x", "message_deleted", {})
    assert repos.store.chat_logs == []


def test_conversation_summaries_order(repos):
    me = make_dealer(repos, name="Me")
    old = make_dealer(repos, name="Old")
    recent = make_dealer(repos, name="Recent")
    zed = make_dealer(repos, name="zed")
    anna = make_dealer(repos, name="Anna")
    make_dealer(repos, name="Gone", status="inactive", is_active=False)
    now = utcnow()

    m_old = messages_service.send_message(repos, old.id, me.id, "old")
    m_recent = messages_service.send_message(repos, me.id, recent.id, "recent")
    _set_timestamp(repos, m_old, now - timedelta(hours=2))
    _set_timestamp(repos, m_recent, now - timedelta(minutes=1))

    summaries = chat_service.get_conversation_summaries(repos, me.id)

    assert [s.dealer.name for s in summaries] == ["Recent", "Old", "Anna", "zed"]
    assert summaries[0].last_message.id == m_recent.id
    assert summaries[1].unread_count == 1
    assert summaries[0].unread_count == 0
    assert summaries[2].last_message is None


def test_conversation_summaries_in_demo_mode(demo_repos):
    summaries = chat_service.get_conversation_summaries(demo_repos, "demo-dealer")
    assert [s.dealer.id for s in summaries] == ["demo-admin", "demo-manager"]
