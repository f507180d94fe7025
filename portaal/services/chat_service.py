# file: portaal/services/chat_service.py

import logging
from typing import Any

from portaal.repositories.base import Repositories
from portaal.schemas.messages import ConversationSummary, MessageRead
from portaal.services import messages_service
from portaal.services.dealers_service import list_dealers
from portaal.utils.clock import as_utc

logger = logging.getLogger("chat_service")

CHAT_ACTIONS = {"message_sent", "message_read", "conversation_started"}


def _summary_sort_key(summary: ConversationSummary):
    """
    Mais recente primeiro; pares sem mensagem vão para o fim,
    ordenados pelo nome do dealer (determinístico).
    """
    if summary.last_message is None or summary.last_message.timestamp is None:
        return (1, 0.0, summary.dealer.name.lower(), summary.dealer.id)
    ts = as_utc(summary.last_message.timestamp).timestamp()
    return (0, -ts, summary.dealer.name.lower(), summary.dealer.id)


def get_conversation_summaries(repos: Repositories, user_id: str) -> list[ConversationSummary]:
    try:
        others = [
            d for d in list_dealers(repos)
            if d.id != user_id and d.status == "active"
        ]
        summaries = [
            ConversationSummary(
                dealer=dealer,
                last_message=messages_service.get_last_message(repos, user_id, dealer.id),
                unread_count=messages_service.get_unread_count(repos, user_id, dealer.id),
            )
            for dealer in others
        ]
    except Exception as e:
        logger.error(f"❌ [Chat] Falha montando resumos de conversa user={user_id}: {e}")
        return []

    return sorted(summaries, key=_summary_sort_key)


def send_message(repos: Repositories, sender_id: str, receiver_id: str, text: str) -> MessageRead | None:
    """
    Controller do chat: envia e registra a ação (best-effort).
    """
    first_contact = messages_service.get_last_message(repos, sender_id, receiver_id) is None
    message = messages_service.send_message(repos, sender_id, receiver_id, text)
    if message is None:
        return None

    if first_contact:
        log_chat_action(repos, sender_id, "conversation_started", {"receiver_id": receiver_id})
    log_chat_action(repos, sender_id, "message_sent", {
        "message_id": message.id,
        "receiver_id": receiver_id,
    })
    return message


def mark_conversation_as_read(repos: Repositories, user_id: str, other_id: str) -> list[MessageRead]:
    changed = messages_service.mark_conversation_as_read(repos, user_id, other_id)
    if changed:
        log_chat_action(repos, user_id, "message_read", {
            "other_id": other_id,
            "message_ids": [m.id for m in changed],
        })
    return changed


def log_chat_action(repos: Repositories, user_id: str, action: str, details: dict[str, Any]):
    if repos.demo:
        return

    if action not in CHAT_ACTIONS:
        logger.warning(f"⚠️ [Chat] Ação desconhecida ignorada: {action}")
        return

    try:
        repos.logs.log_chat(user_id, action, details)
    except Exception as e:
        logger.warning(f"⚠️ [Chat] Falha registrando ação {action} user={user_id}: {e}")
