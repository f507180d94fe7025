# file: portaal/realtime/notifier.py

"""
Notificação de mudanças em mensagens.

Um único contrato (`ChangeNotifier`) com dois backends escolhidos na
construção:
- RedisChangeNotifier: push via pub/sub, canal por par de participantes
- PollingChangeNotifier: pull, rebusca a conversa a cada intervalo

Se a assinatura push falhar, o assinante cai silenciosamente no polling.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import AsyncIterator, Awaitable, Callable

from pydantic import ValidationError

from portaal.core import redis as redis_core
from portaal.core.settings import Settings
from portaal.schemas.messages import MessageEvent, MessageRead
from portaal.services.messages_service import get_conversation
from portaal.services.presence_service import OpenRepositories

logger = logging.getLogger("realtime")

RedisFactory = Callable[[str], Awaitable]


def pair_channel(user_id: str, other_id: str) -> str:
    first, second = sorted((user_id, other_id))
    return f"messages:{first}:{second}"


class ChangeNotifier(ABC):
    name = "base"

    @abstractmethod
    async def publish(self, event: MessageEvent):
        """Best-effort: nunca propaga falha."""

    @abstractmethod
    def subscribe(
        self,
        user_id: str,
        other_id: str,
        baseline: list[MessageRead] | None = None,
    ) -> AsyncIterator[MessageEvent]:
        """
        Eventos INSERT/UPDATE do par, em ordem de chegada.
        `baseline` é o histórico que o assinante já tem: mudanças
        posteriores a ele são entregues mesmo antes da assinatura ativar.
        """

    async def publish_many(self, event_type: str, messages: list[MessageRead]):
        for message in messages:
            await self.publish(MessageEvent(type=event_type, message=message))

    async def close(self):
        return None


# ============================================================
# Pull
# ============================================================

class PollingChangeNotifier(ChangeNotifier):
    name = "polling"

    def __init__(self, open_repositories: OpenRepositories, interval: float = 5.0):
        self.open_repositories = open_repositories
        self.interval = interval

    async def publish(self, event: MessageEvent):
        # o próximo ciclo de polling enxerga a linha
        return None

    def _fetch_sync(self, user_id: str, other_id: str) -> list[MessageRead]:
        with self.open_repositories() as repos:
            return get_conversation(repos, user_id, other_id)

    async def _fetch(self, user_id: str, other_id: str) -> list[MessageRead]:
        # sessão síncrona fora do event loop
        return await asyncio.to_thread(self._fetch_sync, user_id, other_id)

    async def changes_since(self, user_id: str, other_id: str, known: dict[str, bool]) -> list[MessageEvent]:
        """
        Diferença entre o estado conhecido (id → read) e o banco.
        Atualiza `known` no lugar.
        """
        events = []
        for message in await self._fetch(user_id, other_id):
            previous = known.get(message.id)
            known[message.id] = message.read

            if previous is None:
                events.append(MessageEvent(type="INSERT", message=message))
            elif previous != message.read:
                events.append(MessageEvent(type="UPDATE", message=message))
        return events

    async def subscribe(
        self,
        user_id: str,
        other_id: str,
        baseline: list[MessageRead] | None = None,
    ) -> AsyncIterator[MessageEvent]:
        if baseline is None:
            baseline = await self._fetch(user_id, other_id)
        known = {m.id: m.read for m in baseline}

        while True:
            await asyncio.sleep(self.interval)

            for event in await self.changes_since(user_id, other_id, known):
                yield event


# ============================================================
# Push (Redis pub/sub)
# ============================================================

class RedisChangeNotifier(ChangeNotifier):
    name = "redis"

    def __init__(
        self,
        url: str,
        fallback: PollingChangeNotifier,
        redis_factory: RedisFactory = redis_core.get_redis,
    ):
        self.url = url
        self.fallback = fallback
        self.redis_factory = redis_factory

    async def publish(self, event: MessageEvent):
        channel = pair_channel(event.message.sender_id, event.message.receiver_id)
        try:
            redis = await self.redis_factory(self.url)
            await redis.publish(channel, event.model_dump_json())
        except Exception as e:
            logger.warning(f"⚠️ [Realtime] Falha publicando {event.type} em {channel}: {e}")

    async def subscribe(
        self,
        user_id: str,
        other_id: str,
        baseline: list[MessageRead] | None = None,
    ) -> AsyncIterator[MessageEvent]:
        channel = pair_channel(user_id, other_id)

        try:
            redis = await self.redis_factory(self.url)
            pubsub = redis.pubsub()
            await pubsub.subscribe(channel)
        except Exception as e:
            logger.warning(f"⚠️ [Realtime] Assinatura falhou ({channel}), usando polling: {e}")
            async for event in self.fallback.subscribe(user_id, other_id, baseline=baseline):
                yield event
            return

        logger.info(f"[Realtime] Assinado {channel}")
        failed = False
        try:
            if baseline is not None:
                # publicações entre o histórico e o subscribe se perderam
                known = {m.id: m.read for m in baseline}
                for event in await self.fallback.changes_since(user_id, other_id, known):
                    yield event

            while True:
                raw = await pubsub.get_message(ignore_subscribe_messages=True, timeout=1.0)
                if raw is None or raw.get("type") != "message":
                    continue
                try:
                    yield MessageEvent.model_validate_json(raw["data"])
                except ValidationError as e:
                    logger.warning(f"⚠️ [Realtime] Payload inválido em {channel}: {e}")
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"⚠️ [Realtime] Canal {channel} caiu, usando polling: {e}")
            failed = True
        finally:
            try:
                await pubsub.unsubscribe(channel)
                await pubsub.aclose()
            except Exception as e:
                logger.debug(f"[Realtime] Erro fechando pubsub {channel}: {e}")

        if failed:
            async for event in self.fallback.subscribe(user_id, other_id, baseline=baseline):
                yield event

    async def close(self):
        await redis_core.close_redis()


# ============================================================
# Feed local (dedupe por id)
# ============================================================

class MessageFeed:
    """
    Lista de mensagens de uma conversa aberta. Aplica eventos e
    ignora INSERT de um id que já está na lista.
    """

    def __init__(self, messages: list[MessageRead] | None = None):
        self.messages: list[MessageRead] = list(messages or [])

    def contains(self, message_id: str) -> bool:
        return any(m.id == message_id for m in self.messages)

    def add(self, message: MessageRead) -> bool:
        if self.contains(message.id):
            return False
        self.messages.append(message)
        return True

    def apply(self, event: MessageEvent) -> bool:
        if event.type == "INSERT":
            return self.add(event.message)

        for index, message in enumerate(self.messages):
            if message.id == event.message.id:
                if message == event.message:
                    return False
                self.messages[index] = event.message
                return True
        return False

    def mark_read(self, message_ids: list[str]):
        wanted = set(message_ids)
        self.messages = [
            m.model_copy(update={"read": True}) if m.id in wanted else m
            for m in self.messages
        ]


def build_notifier(settings: Settings, open_repositories: OpenRepositories) -> ChangeNotifier:
    polling = PollingChangeNotifier(open_repositories, interval=settings.POLL_INTERVAL_SECONDS)

    if settings.REALTIME_BACKEND.lower() == "redis":
        logger.info(f"[Realtime] Backend redis ({settings.REDIS_URL})")
        return RedisChangeNotifier(settings.REDIS_URL, fallback=polling)

    logger.info(f"[Realtime] Backend polling (intervalo={settings.POLL_INTERVAL_SECONDS}s)")
    return polling
