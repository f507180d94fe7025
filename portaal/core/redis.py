# file: portaal/core/redis.py

import redis.asyncio as aioredis
import logging

logger = logging.getLogger("redis")

# ============================================================
# 🔌 Conexão Redis (uma por URL)
# ============================================================

_clients: dict[str, aioredis.Redis] = {}


async def get_redis(url: str) -> aioredis.Redis:
    """
    Retorna um cliente Redis reutilizável para a URL.
    """
    client = _clients.get(url)

    if client is None:
        try:
            client = aioredis.Redis.from_url(url, decode_responses=True)

            # Testa conexão
            pong = await client.ping()
            if pong:
                logger.info("⚡ Redis conectado com sucesso!")

        except Exception as e:
            logger.error(f"❌ Erro conectando ao Redis: {e}")
            raise

        _clients[url] = client

    return client


async def close_redis():
    clients = list(_clients.values())
    _clients.clear()
    for client in clients:
        try:
            await client.aclose()
        except Exception as e:
            logger.error(f"❌ Erro fechando Redis: {e}")

