#!/usr/bin/env python3
"""
Countdown Bot orchestrator.

This file does ONE thing: coordinate component startup and shutdown.
The countdown logic lives in plugins/countdown; platform plumbing in core.

Startup order:
1. Overlay publisher and countdown engine (pure in-process state)
2. Gateway channel, chat sender and router
3. Overlay HTTP server
"""

import argparse
import asyncio
import logging
import sys
from typing import Any, Dict, Optional

import uvicorn

from .common.config import ConfigError, get_config
from .core.chat_sender import ChatSender
from .core.joystick_channel import JoystickChannel
from .core.overlay_server import create_overlay_app
from .core.router import CommandRouter
from .lib.connection import ConnectionError
from .plugins.countdown import CountdownEngine, OverlayPublisher


logger = logging.getLogger(__name__)


class CountdownBot:
    """
    Bot orchestrator.

    Responsibilities:
    1. Build the engine and its collaborators from config
    2. Start components in dependency order
    3. Coordinate graceful shutdown

    Args:
        params: Flattened settings from common.config.get_config()
    """

    def __init__(self, params: Dict[str, Any]):
        self.params = params

        self.publisher = OverlayPublisher()
        self.channel = JoystickChannel(
            api_host=params['api_host'],
            client_id=params['client_id'],
            client_secret=params['client_secret'],
            gateway_identifier=params['gateway_identifier'],
            retry=params.get('retry', 0),
            retry_delay=params.get('retry_delay', 1.0),
        )
        self.sender = ChatSender(self.channel)
        self.engine = CountdownEngine(
            self.sender, self.publisher, params.get('countdown')
        )
        self.router = CommandRouter(self.engine)

        self._overlay_server: Optional[uvicorn.Server] = None
        self._overlay_task: Optional[asyncio.Task] = None

    async def start(self) -> None:
        """Start all components in correct order"""
        try:
            logger.info("Starting chat sender...")
            await self.sender.start()

            logger.info("Starting router...")
            self.router.start(self.channel)

            logger.info("Connecting to JoystickTV gateway...")
            await self.channel.connect()

            if self.params.get('overlay_enabled', True):
                self._start_overlay()

            logger.info("✅ Countdown bot started")

        except Exception as e:
            logger.error(f"Failed to start countdown bot: {e}", exc_info=True)
            await self.stop()
            raise

    def _start_overlay(self) -> None:
        host = self.params.get('overlay_host', '0.0.0.0')
        port = self.params.get('overlay_port', 8080)
        app = create_overlay_app(self.publisher, self.engine.get_snapshot)
        config = uvicorn.Config(app, host=host, port=port, log_level="warning")
        self._overlay_server = uvicorn.Server(config)
        self._overlay_task = asyncio.create_task(self._overlay_server.serve())
        logger.info(f"Overlay stream at http://{host}:{port}/overlay/stream")

    async def stop(self) -> None:
        """Stop all components in reverse order"""
        logger.info("Shutting down countdown bot...")

        if self._overlay_server is not None:
            self._overlay_server.should_exit = True
        if self._overlay_task is not None:
            await self._overlay_task
            self._overlay_task = None

        await self.channel.disconnect()
        self.router.stop()
        await self.sender.stop()
        await self.engine.shutdown()

        logger.info("✅ Countdown bot stopped")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Chat-driven countdown bot for JoystickTV"
    )
    parser.add_argument(
        '-c', '--config',
        help="JSON or YAML config file (JOYSTICKTV_* variables override it)",
    )
    return parser.parse_args(argv)


async def main(argv=None) -> int:
    """Entry point"""
    args = parse_args(argv)
    try:
        _conf, params = get_config(args.config)
    except ConfigError as e:
        print(f'ERROR: {e}', file=sys.stderr)
        return 1

    bot = CountdownBot(params)
    try:
        await bot.start()
    except ConnectionError as e:
        logger.error(f"Could not connect: {e}")
        return 1

    try:
        # Run until interrupted
        await asyncio.Event().wait()
    except asyncio.CancelledError:
        logger.info("Received shutdown signal")
    finally:
        await bot.stop()
    return 0


def run() -> None:
    """Console script entry point"""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
