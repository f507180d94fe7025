import logging

from portaal.core.errors import NotConfiguredError, translate_write_error
from portaal.repositories.base import Repositories
from portaal.schemas.messages import MessageRead

logger = logging.getLogger("messages_service")


def get_conversation(repos: Repositories, user_id: str, other_id: str) -> list[MessageRead]:
    try:
        return repos.messages.conversation(user_id, other_id)
    except Exception as e:
        logger.error(f"❌ [Messages] Falha buscando conversa {user_id}<->{other_id}: {e}")
        return []


def send_message(repos: Repositories, sender_id: str, receiver_id: str, text: str) -> MessageRead | None:
    """
    Texto vazio ou só espaços não cria linha (retorna None).
    """
    text = (text or "").strip()
    if not text:
        return None

    if repos.demo:
        raise NotConfiguredError()

    try:
        message = repos.messages.create(sender_id, receiver_id, text)
    except Exception as e:
        logger.error(f"❌ [Messages] Falha enviando mensagem {sender_id}->{receiver_id}: {e}")
        raise translate_write_error(e, "send message")

    logger.info(f"[Messages] Mensagem enviada id={message.id} {sender_id}->{receiver_id}")
    return message


def mark_as_read(repos: Repositories, message_ids: list[str]) -> list[MessageRead]:
    """
    Marca exatamente os ids informados. Best-effort: devolve as que mudaram.
    """
    if not message_ids or repos.demo:
        return []

    try:
        return repos.messages.mark_read(message_ids)
    except Exception as e:
        logger.warning(f"⚠️ [Messages] Falha marcando mensagens como lidas: {e}")
        return []


def mark_conversation_as_read(repos: Repositories, user_id: str, other_id: str) -> list[MessageRead]:
    if repos.demo:
        return []

    try:
        return repos.messages.mark_conversation_read(user_id, other_id)
    except Exception as e:
        logger.warning(f"⚠️ [Messages] Falha marcando conversa como lida {user_id}<-{other_id}: {e}")
        return []


def get_unread_count(repos: Repositories, user_id: str, other_id: str) -> int:
    try:
        return repos.messages.unread_count(user_id, other_id)
    except Exception as e:
        logger.warning(f"⚠️ [Messages] Falha contando não lidas {user_id}<-{other_id}: {e}")
        return 0


def get_last_message(repos: Repositories, user_id: str, other_id: str) -> MessageRead | None:
    try:
        return repos.messages.last_message(user_id, other_id)
    except Exception as e:
        logger.warning(f"⚠️ [Messages] Falha buscando última mensagem {user_id}<->{other_id}: {e}")
        return None
