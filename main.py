#!/usr/bin/env python3
"""
Slider OSC Bridge - Main Application
Drives a pan/tilt/slide/zoom slider over OSC and reports its axis positions
"""

import asyncio
import logging
import signal
import sys
import argparse
from typing import Optional

from slider_bridge.api_server import APIServer
from slider_bridge.host import LoggingHost
from slider_bridge.session import SessionController
from slider_bridge.utils import load_config, save_config, setup_logging


DEFAULT_API = {'host': '0.0.0.0', 'port': 8090, 'enable_cors': True}


class SliderBridge:
    """Main bridge application"""

    def __init__(self, config: dict, config_path: Optional[str] = None):
        self.config = config
        self.config_path = config_path
        self.logger = logging.getLogger(__name__)

        self.host = LoggingHost()
        self.session = SessionController(self.host)
        self.api_server = APIServer(
            self.session, self.host, {**DEFAULT_API, **config.get('api', {})},
            on_config_saved=self.save_device_config,
        )

        self.stop_event: Optional[asyncio.Event] = None

    async def run(self):
        """Configure the session, serve the API and wait for shutdown"""
        self.stop_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.request_stop, sig)
            except NotImplementedError:
                # Windows event loops have no signal handlers
                pass

        await self.session.init(self.config.get('device', {}))
        await self.api_server.start()

        try:
            await self.stop_event.wait()
        finally:
            await self.cleanup()

    def save_device_config(self, device: dict):
        """Persist the device section so the next start reconnects to the same slider"""
        self.config['device'] = device
        if not self.config_path:
            return
        try:
            save_config(self.config, self.config_path)
            self.logger.info(f"Saved device configuration to {self.config_path}")
        except IOError as e:
            self.logger.error(f"Error: {e}")

    def request_stop(self, signum=None):
        if signum is not None:
            self.logger.info(f"Received signal {signum}, shutting down...")
        if self.stop_event is not None:
            self.stop_event.set()

    async def cleanup(self):
        """Cleanup resources"""
        self.logger.info("Cleaning up...")
        await self.api_server.stop()
        await self.session.destroy()
        self.logger.info("Cleanup complete")


async def main():
    """Main entry point"""
    parser = argparse.ArgumentParser(description='Slider OSC Bridge')
    parser.add_argument('--config', '-c', default='config.json', help='Configuration file path')
    parser.add_argument('--debug', '-d', action='store_true', help='Enable debug logging')
    parser.add_argument('--target-ip', help='Slider IP address (overrides config)')
    parser.add_argument('--api-port', type=int, help='REST API port (overrides config)')

    args = parser.parse_args()

    logger = logging.getLogger(__name__)

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        if args.target_ip is None:
            setup_logging('DEBUG' if args.debug else 'INFO')
            logger.error(f"Error: {e}")
            sys.exit(1)
        config = {}

    level = 'DEBUG' if args.debug else config.get('log_level', 'INFO')
    setup_logging(level, config.get('log_file'))

    if args.target_ip:
        config.setdefault('device', {})['target_ip'] = args.target_ip
    if args.api_port:
        config.setdefault('api', {})['port'] = args.api_port

    logger.info("Starting Slider OSC Bridge")
    bridge = SliderBridge(config, args.config)
    try:
        await bridge.run()
    except KeyboardInterrupt:
        logger.info("Interrupted by user")


def cli():
    asyncio.run(main())


if __name__ == "__main__":
    cli()
