import asyncio, json
from aio_pika import connect_robust, ExchangeType
from planner.core.config import settings
from planner.core.logging import logger
from planner.events.publisher import EXCHANGE_NAME
from planner.websocket.manager import manager

async def handle_message(body: bytes):
    data = json.loads(body.decode())
    typ = data.get("type")
    if typ == "notification.created":
        user_id = data.get("user_id")
        if not user_id:
            logger.warning("Dropping notification message without user_id")
            return
        await manager.send_personal_message(user_id, data)
    else:
        logger.debug(f"Ignoring message of type {typ}")

async def run_worker():
    max_retries = 10
    delay = 5  # seconds
    for attempt in range(1, max_retries + 1):
        try:
            connection = await connect_robust(settings.RABBITMQ_URL)
            logger.info("Successfully connected to RabbitMQ")
            break
        except Exception as e:
            logger.error(f"RabbitMQ connection failed (attempt {attempt}/{max_retries}): {e}")
            if attempt == max_retries:
                raise
            await asyncio.sleep(delay)
    channel = await connection.channel()
    exchange = await channel.declare_exchange(EXCHANGE_NAME, ExchangeType.TOPIC, durable=True)
    queue = await channel.declare_queue("planner.notifications", durable=True)
    await queue.bind(exchange, routing_key="notification.*")
    async with queue.iterator() as queue_iter:
        async for message in queue_iter:
            async with message.process():
                try:
                    await handle_message(message.body)
                except Exception as e:
                    logger.exception(f"Error handling message: {e}")
