"""Application entry point for the mediavault archiver."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from typing import Optional

from art import tprint
from dotenv import load_dotenv
import uvicorn

import settings
from adapters.sqlite_storage import SQLiteStorage
from api.app import create_app
from client import ArchiveClient, bot_token, build_client
from core.capture import CapturePipeline
from core.digest import DigestPublisher
from log_setup import configure_logging, secret_values
from scheduler import WeeklyDigestScheduler

NAME = "MEDIAVAULT"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


def _configure_logging() -> None:
    if not settings.LOGGING_ENABLED:
        return

    load_dotenv()
    configure_logging(
        settings.LOG_LEVEL,
        secret_values(settings.REDACT_ENV_VARS),
        console=settings.LOG_TO_CONSOLE,
        file_path=settings.LOG_FILE_PATH,
        max_bytes=settings.LOG_FILE_MAX_BYTES,
        backup_count=settings.LOG_FILE_BACKUP_COUNT,
    )


def _open_storage() -> SQLiteStorage:
    storage = SQLiteStorage(settings.DB_PATH)
    storage.init_db()
    return storage


async def _serve(client: ArchiveClient, token: str, scheduler: WeeklyDigestScheduler, server: uvicorn.Server) -> None:
    logger = logging.getLogger(__name__)
    async with client:
        # Scheduler and gateway share the loop with the API server.
        scheduler.start()
        bot_task = asyncio.create_task(client.start(token, reconnect=True))
        try:
            await server.serve()
        finally:
            logger.info("Shutting down")
            scheduler.stop()
            await client.close()
            bot_task.cancel()
            try:
                await bot_task
            except asyncio.CancelledError:
                pass
            except Exception:
                logger.exception("Discord client stopped with an error")


def _run() -> None:
    _print_banner()
    _configure_logging()
    logger = logging.getLogger(__name__)

    logger.info("Starting mediavault")

    token = bot_token()
    site_password = os.getenv("SITE_PASSWORD")
    # Fail fast: the dashboard would otherwise be reachable without a password.
    if not site_password:
        raise RuntimeError("Missing SITE_PASSWORD in environment")

    storage = _open_storage()
    pipeline = CapturePipeline(storage)
    client = build_client(pipeline)
    publisher = DigestPublisher(storage, client, settings.DIGEST_CONFIG)
    scheduler = WeeklyDigestScheduler(publisher, settings.DIGEST_SCHEDULE)

    api = create_app(
        storage=storage,
        publisher=publisher,
        connection_status=client.connection_status,
        site_password=site_password,
        session_secret=os.getenv("SESSION_SECRET"),
    )
    server = uvicorn.Server(
        uvicorn.Config(api, host=settings.API_HOST, port=settings.API_PORT, log_config=None)
    )
    logger.info("Dashboard API listening on %s:%s", settings.API_HOST, settings.API_PORT)

    asyncio.run(_serve(client, token, scheduler, server))


def _digest() -> None:
    """Connect, run a single digest, and disconnect."""

    _print_banner()
    _configure_logging()
    token = bot_token()
    storage = _open_storage()
    client = build_client()
    publisher = DigestPublisher(storage, client, settings.DIGEST_CONFIG)

    async def _run_digest() -> None:
        async with client:
            await client.login(token)
            connect_task = asyncio.create_task(client.connect(reconnect=False))
            try:
                await client.wait_until_ready()
                result = await publisher.run()
            finally:
                await client.close()
                await asyncio.gather(connect_task, return_exceptions=True)
        if result.success:
            print(f"Digest completed: {result.message_count} messages")
        else:
            print(f"Digest failed: {result.error}")

    asyncio.run(_run_digest())


def _discover() -> None:
    """List the guilds and text channels the bot can see."""

    _print_banner()
    token = bot_token()
    client = build_client()

    async def _run_discover() -> None:
        async with client:
            await client.login(token)
            connect_task = asyncio.create_task(client.connect(reconnect=False))
            try:
                await client.wait_until_ready()
                if not client.guilds:
                    print("The bot is not a member of any server.")
                for guild in client.guilds:
                    for channel in guild.text_channels:
                        print(f"{guild.name} ({guild.id}) | #{channel.name} | {channel.id}")
            finally:
                await client.close()
                await asyncio.gather(connect_task, return_exceptions=True)

    asyncio.run(_run_discover())


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="mediavault")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start the bot, the weekly digest, and the dashboard API")
    subparsers.add_parser("digest", help="Post one digest to the backup channel now")
    subparsers.add_parser(
        "discover",
        help="List the servers and text channels the bot can see, with their ids.",
    )

    args = parser.parse_args(argv)
    if args.command == "digest":
        _digest()
        return
    if args.command == "discover":
        _discover()
        return
    _run()


if __name__ == "__main__":
    main()
