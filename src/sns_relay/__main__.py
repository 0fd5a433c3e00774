"""CLI entry point for sns-relay."""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys

from sns_relay.app import SnsRelayApp, build_registry, create_http_client
from sns_relay.config import load_config
from sns_relay.log import setup_logging


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="sns-relay",
        description="Discord bot that re-posts social media links as durable attachments",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    for name, help_text in (("start", "Start the bot"), ("config-check", "Validate configuration")):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("-c", "--config", default="config.yaml", help="Path to config file")
        sub.add_argument("-e", "--env", default=".env", help="Path to .env file")

    args = parser.parse_args()

    if args.command is None:
        # Default to start
        args.command = "start"
        args.config = "config.yaml"
        args.env = ".env"

    if args.command == "config-check":
        _check_config(args.config, args.env)
    elif args.command == "start":
        _run(args.config, args.env)


def _check_config(config_path: str, env_path: str) -> None:
    """Validate configuration and print summary."""
    try:
        config = load_config(config_path, env_path)
    except Exception as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging("ERROR")

    async def _platforms() -> list[str]:
        async with create_http_client(config) as client:
            return [p.value for p in build_registry(config, client).platforms()]

    platforms = asyncio.run(_platforms())
    whitelist = config.discord.channel_whitelist
    print(f"Configuration valid: {config_path}")
    print(f"  Channels: {', '.join(whitelist) if whitelist else '(all guild channels)'}")
    print(f"  Platforms: {', '.join(platforms) if platforms else '(none)'}")
    print(f"  Reference timezone: {config.pipeline.reference_timezone}")
    print(f"  TikTok mirror index: {config.providers.tiktok.mirror_index}")
    if config.health.enabled:
        print(f"  Health check: http://{config.health.host}:{config.health.port}/v1/health")


def _run(config_path: str, env_path: str) -> None:
    """Load config and start the application."""
    try:
        config = load_config(config_path, env_path)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        print("Copy config.example.yaml to config.yaml and fill in the tokens")
        sys.exit(1)
    except Exception as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(config.log_level, config.log_format)

    async def _async_main() -> None:
        loop = asyncio.get_running_loop()
        stop_event = asyncio.Event()

        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, stop_event.set)
            except NotImplementedError:
                # Windows doesn't support add_signal_handler
                signal.signal(sig, lambda s, f: stop_event.set())

        app = SnsRelayApp(config)
        await app.start()
        try:
            await stop_event.wait()
        finally:
            await app.stop()

    asyncio.run(_async_main())


if __name__ == "__main__":
    main()
