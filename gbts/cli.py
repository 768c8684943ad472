# ==============================================
# CLI: Command Line Entry Point
# ==============================================
#
# PURPOSE:
#   Turns a TypeScript source (or project directory) into a GameBoy
#   ROM by running the build chain in gbts.toolchain.command.
#
# COMMANDS:
# ---------
# 1. Everything, TypeScript → ROM (default):
#    gbts --path game.ts
#    gbts all --path game.ts
#
# 2. Transpile only:
#    gbts transpile --path game.ts
#    gbts transpile --path ./my-game --provider openai
#
# 3. Compile an existing .c to a ROM:
#    gbts compile --path game.c
#
# 4. Package an existing .ihx:
#    gbts build --path game.ihx
#
# 5. Write the effective configuration to gbts.config.json:
#    gbts --save-config --transpiler ts2c
#
# EXIT CODES:
# -----------
#   0  success
#   1  bad arguments, invalid configuration or a failed step
#
# ==============================================

import argparse
import sys
from typing import List, Optional

from gbts import __version__
from gbts.config import TRANSPILER_MODES, AppConfig, load_config, save_config, validate_config
from gbts.errors import ConfigError, GBTSError
from gbts.logger import Logger
from gbts.toolchain.command import Command


COMMANDS = ("all", "transpile", "compile", "build")
ROM_COMMANDS = ("all", "compile", "build")

# Steps each command runs, as announced before it starts
STEP_DESCRIPTIONS = {
    "all": "Transpile / Compile / Build rom",
    "transpile": "Transpile",
    "compile": "Compile / Build rom",
    "build": "Build rom",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gbts",
        description="TypeScript → GameBoy ROM toolchain",
    )
    parser.add_argument("command", nargs="?",
                        help="all | transpile | compile | build (default: all)")
    parser.add_argument("--path", help="Source file or project directory")
    parser.add_argument("--config", help="JSON config file (default: ./gbts.config.json)")
    parser.add_argument("--transpiler", choices=TRANSPILER_MODES, help="Transpiler for the transpile step")
    parser.add_argument("--provider", help="Primary AI provider (claude, openai, openrouter, local)")
    parser.add_argument("--no-cache", action="store_true", help="Disable the transpilation cache")
    parser.add_argument("--save-config", action="store_true",
                        help="Write the effective configuration (without API keys) and exit")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def apply_overrides(config: AppConfig, args: argparse.Namespace) -> None:
    """Command line flags take precedence over the file and the environment."""
    if args.transpiler:
        config.toolchain.transpiler = args.transpiler
    if args.provider:
        config.providers.primary = args.provider
        if args.provider == "local":
            config.providers.local.enabled = True
    if args.no_cache:
        config.caching.enabled = False


def run(command_name: str, path: str, config: AppConfig, command: Optional[Command] = None) -> None:
    command = command or Command(config)
    steps = {
        "all": command.all,
        "transpile": command.transpile_only,
        "compile": command.compile_all,
        "build": command.build,
    }
    steps[command_name](path)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    command_name = (args.command or "all").lower()

    if command_name not in COMMANDS:
        Logger.error(f"Command {args.command} unknown.")
        return 1

    try:
        config = load_config(args.config)
        apply_overrides(config, args)
        errors = validate_config(config)
        if errors:
            raise ConfigError(errors)
    except ConfigError as e:
        Logger.error("Invalid configuration:")
        for error in e.errors:
            Logger.error(f"  {error}")
        return 1

    if args.save_config:
        written = save_config(config)
        Logger.success(f"Configuration written to {written}")
        return 0

    if not args.path:
        Logger.error("Path is mandatory !")
        return 1

    if args.command is None:
        Logger.info(f"No command set, run {STEP_DESCRIPTIONS['all']}.")
    else:
        Logger.info(f"Run command {command_name} : {STEP_DESCRIPTIONS[command_name]}.")

    try:
        run(command_name, args.path, config)
    except GBTSError as e:
        Logger.stop_loading()
        Logger.error(e)
        return 1

    if command_name in ROM_COMMANDS:
        Logger.success("ROM built")
    return 0


if __name__ == "__main__":
    sys.exit(main())
