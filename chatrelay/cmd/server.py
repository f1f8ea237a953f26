from __future__ import annotations

import argparse
import asyncio
import logging
import signal

from pydantic import ValidationError

from chatrelay.core.config import RelayConfig, load_config
from chatrelay.core.errors import StorageFailure
from chatrelay.server.runtime import RelayRuntime

log = logging.getLogger("chatrelay.cmd.server")


def _stop_on_signals(stop_event: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows event loops: fall back to KeyboardInterrupt
            return


async def _serve(config: RelayConfig) -> None:
    stop_event = asyncio.Event()
    _stop_on_signals(stop_event)
    await RelayRuntime(config).run_until(stop_event)


def build_config(args: argparse.Namespace) -> RelayConfig:
    config = load_config(args.config)
    overrides = {}
    if args.db:
        overrides["db_path"] = args.db
    if args.log_level:
        overrides["log_level"] = args.log_level
    if not overrides:
        return config
    # re-validate so overrides get the same checks as the file
    return RelayConfig.model_validate({**config.model_dump(), **overrides})


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Presence-aware chat relay")
    parser.add_argument("--config", help="Path to relay YAML config (default: configs/relay.yaml)")
    parser.add_argument("--db", help="SQLite file for the message log (overrides db_path)")
    parser.add_argument("--log-level", help="Logging level (overrides log_level)")
    args = parser.parse_args(argv)

    try:
        config = build_config(args)
    except ValidationError as exc:
        parser.error(f"invalid configuration: {exc}")

    logging.basicConfig(level=config.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        asyncio.run(_serve(config))
    except StorageFailure as exc:
        log.error("Relay could not start: %s", exc)
        raise SystemExit(1) from exc
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
