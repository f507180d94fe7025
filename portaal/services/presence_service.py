# file: portaal/services/presence_service.py

import asyncio
import logging
from contextlib import AbstractContextManager
from typing import Awaitable, Callable

from portaal.repositories.base import Repositories
from portaal.services.dealers_service import get_online_dealers, touch_last_login

logger = logging.getLogger("presence")

OpenRepositories = Callable[[], AbstractContextManager[Repositories]]
OnlineCallback = Callable[[set[str]], Awaitable[None]]


class PresenceTracker:
    """
    Presença por polling para um visualizador:
    - atualiza o próprio last_login já e a cada `touch_interval`
    - rebusca os dealers online já e a cada `refresh_interval`
    Os dois timers são cancelados em stop().
    """

    def __init__(
        self,
        open_repositories: OpenRepositories,
        viewer_id: str,
        on_update: OnlineCallback | None = None,
        refresh_interval: float = 30.0,
        touch_interval: float = 60.0,
    ):
        self.open_repositories = open_repositories
        self.viewer_id = viewer_id
        self.on_update = on_update
        self.refresh_interval = refresh_interval
        self.touch_interval = touch_interval
        self.online_ids: set[str] = set()
        self._tasks: list[asyncio.Task] = []

    def is_online(self, dealer_id: str) -> bool:
        return dealer_id in self.online_ids

    def _touch_sync(self):
        with self.open_repositories() as repos:
            touch_last_login(repos, self.viewer_id)

    def _online_sync(self):
        with self.open_repositories() as repos:
            return get_online_dealers(repos)

    async def touch(self):
        # sessões síncronas rodam fora do event loop
        await asyncio.to_thread(self._touch_sync)

    async def refresh(self) -> set[str]:
        try:
            dealers = await asyncio.to_thread(self._online_sync)
        except Exception as e:
            logger.error(f"❌ [Presence] Falha buscando dealers online: {e}")
            return self.online_ids

        self.online_ids = {d.id for d in dealers}
        if self.on_update is not None:
            await self.on_update(set(self.online_ids))
        return self.online_ids

    async def _every(self, interval: float, action: Callable[[], Awaitable]):
        while True:
            await asyncio.sleep(interval)
            await action()

    async def start(self):
        if self._tasks:
            return
        await self.touch()
        await self.refresh()
        self._tasks = [
            asyncio.create_task(self._every(self.touch_interval, self.touch)),
            asyncio.create_task(self._every(self.refresh_interval, self.refresh)),
        ]
        logger.info(f"[Presence] Tracker iniciado viewer={self.viewer_id}")

    async def stop(self):
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.info(f"[Presence] Tracker encerrado viewer={self.viewer_id}")
