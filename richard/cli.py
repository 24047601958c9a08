from __future__ import annotations

import argparse
import asyncio
import signal
import sys
from pathlib import Path
from typing import Optional

import structlog
from pydantic import ValidationError

from richard.bot import Bot, params_documentation
from richard.config import load_environment, load_settings
from richard.errors import NoModuleEnabledError, WorkersCollapsedError
from richard.logging_setup import configure_logging
from richard.modules import KNOWN_MODULES

logger = structlog.get_logger(__name__)


async def serve(bot: Bot) -> int:
    """Run the bot until a signal arrives or its workers collapse."""
    task = asyncio.create_task(bot.run(), name="bot")
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, task.cancel)
        except NotImplementedError:
            pass

    try:
        await task
    except asyncio.CancelledError:
        logger.info("shutdown requested")
        return 0
    except NoModuleEnabledError:
        logger.error("no module enabled, nothing to do")
        return 1
    except WorkersCollapsedError as e:
        logger.error("bot stopped", reason=str(e))
        return 1
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.remove_signal_handler(sig)
            except NotImplementedError:
                pass
        await bot.close()
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="richard", description="Chat bot watching services, feeds and releases")
    parser.add_argument("--config", default=None, help="Path to YAML config (default: $RICHARD_CONFIG or config/richard.yaml)")
    parser.add_argument("--show-params", action="store_true", help="Print every module parameter and exit")
    parser.add_argument("--log-level", default=None, help="Logging level (INFO, DEBUG, ...)")
    args = parser.parse_args(argv)

    if args.show_params:
        sys.stdout.write(params_documentation((cls.name, cls.params()) for cls in KNOWN_MODULES))
        return 0

    env = load_environment(Path(args.config) if args.config else None)
    try:
        settings = load_settings(env)
        if args.log_level:
            settings = settings.model_copy(update={"log_level": args.log_level})
    except ValidationError as e:
        sys.stderr.write(f"invalid bot settings:\n{e}\n")
        return 2

    configure_logging(settings.log_level)
    bot = Bot.from_environment(env, KNOWN_MODULES, settings)
    return asyncio.run(serve(bot))


if __name__ == "__main__":
    raise SystemExit(main())
