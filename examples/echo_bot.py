"""
Echo bot example.

Replies to every message that starts with "!echo " with the rest of the
message: privately for private messages, in the same stream and topic
otherwise. Uses a durable event queue, so it survives server hiccups.

Run with:
    python examples/echo_bot.py

Credentials come from zulip_config.yaml (profile "echo_bot"); see
zulip_config.yaml.example.
"""

import asyncio
import logging

from dotenv import load_dotenv

from setup_logging import setup_logging
from zulip_client import (
    Connection,
    Event,
    ZulipError,
    event_queue,
    is_error,
    load_connection_config,
    send_private_message,
    send_stream_message,
)

setup_logging()
logger = logging.getLogger(__name__)

PREFIX = "!echo "


async def handle_event(conn: Connection, event: Event) -> None:
    message = event.payload.get("message") or {}
    content = message.get("content") or ""

    if not content.startswith(PREFIX):
        return

    reply = content[len(PREFIX) :]
    if message.get("type") == "private":
        outcome = await send_private_message(conn, [message["sender_email"]], reply)
    else:
        outcome = await send_stream_message(
            conn, message["display_recipient"], message["subject"], reply
        )

    if is_error(outcome):
        logger.warning(f"Failed to send reply: {outcome}")


async def main():
    load_dotenv()

    config = load_connection_config("echo_bot")

    async with Connection.from_config(config) as conn:
        async with event_queue(conn, event_types=["message"]) as events:
            logger.info("Echo bot running, press Ctrl+C to stop")
            async for item in events:
                if isinstance(item, ZulipError):
                    logger.error(f"Event stream failed: {item}")
                    break
                await handle_event(conn, item)

            logger.info(f"Event stream ended: {events.state.value}")


if __name__ == "__main__":
    asyncio.run(main())
