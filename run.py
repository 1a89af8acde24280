"""Cavern CLI entry point.

Provides subcommands for generating a dungeon to the terminal and for running
the JSON API server. Accepts configuration via flags and ``CAVERN_*``
environment variables, with optional .env loading.

Run `python run.py --help` for details.
"""

import argparse
import json
import os
import signal
import sys
from textwrap import dedent

from colorama import Fore, Style
from colorama import init as _color_init
from dotenv import load_dotenv

from cavern import __version__

_color_init()
# Disable colors if output is not a real terminal (e.g., during pytest capture)
_COLOR_ENABLED = sys.stdout.isatty()

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_PARTIAL = 2


def parse_args(argv: list[str]) -> argparse.Namespace:
    description = """
    Cavern dungeon generator

    Generate a cave dungeon (noise, cellular automata, region pruning and
    corridor linking) and print it, or run the JSON API server. CLI flags take
    precedence over CAVERN_* environment variables.
    """

    epilog = dedent(
        """
        Environment variables:
          HOST             Bind address for the web server (default: 0.0.0.0)
          PORT             Port for the web server (default: 5000)
          CAVERN_<FIELD>   Any generation setting, e.g. CAVERN_WIDTH=80
          CAVERN_LOG_LEVEL debug|info|warn|error

        Examples:
          # Print a 80x40 map for a named seed
          python run.py generate --seed goblin-warren --width 80 --height 40

          # Straight corridors, JSON output
          python run.py generate --corridor straight --json

          # Fail (exit 2) if any room could not be linked
          python run.py generate --strict

          # Load variables from .env then run the server
          python run.py --env-file .env server --port 8080
        """
    )

    parser = argparse.ArgumentParser(
        prog="Cavern",
        description=dedent(description),
        epilog=epilog,
        formatter_class=argparse.RawTextHelpFormatter,
    )

    parser.add_argument(
        "--env-file",
        dest="env_file",
        help="Path to a .env file to load before processing flags",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Cavern {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command")

    gen_parser = subparsers.add_parser(
        "generate",
        help="Generate a dungeon and print it",
        formatter_class=argparse.RawTextHelpFormatter,
        description="Generate one dungeon. Map legend: '#' wall, '.' room, '+' corridor.",
    )
    gen_parser.add_argument("--seed", default=None, help="Integer or any string (hashed)")
    gen_parser.add_argument("--width", type=int, default=None, help="Grid width (default 150)")
    gen_parser.add_argument("--height", type=int, default=None, help="Grid height (default 150)")
    gen_parser.add_argument("--fill", dest="fill_percent", type=int, default=None, help="Wall fill percent")
    gen_parser.add_argument("--steps", dest="automata_steps", type=int, default=None, help="Automaton iterations")
    gen_parser.add_argument("--min-room", dest="min_room_size", type=int, default=None, help="Smallest room kept")
    gen_parser.add_argument(
        "--corridor",
        dest="corridor_algorithm",
        choices=["straight", "orthogonal", "organic", "curved"],
        default=None,
        help="Corridor path algorithm (default organic)",
    )
    gen_parser.add_argument("--corridor-width", dest="corridor_width", type=int, default=None)
    gen_parser.add_argument("--no-noise", dest="no_noise", action="store_true", help="Plain random fill")
    gen_parser.add_argument("--json", dest="as_json", action="store_true", help="Print the result as JSON")
    gen_parser.add_argument("--strict", action="store_true", help="Exit 2 when connectivity is partial")
    gen_parser.set_defaults(command="generate")

    server_parser = subparsers.add_parser(
        "server",
        help="Run the JSON API server",
        formatter_class=argparse.RawTextHelpFormatter,
        description="Run the Flask development server with the dungeon API",
    )
    server_parser.add_argument(
        "--host",
        default=None,
        help="Host interface to bind (default: env HOST or 0.0.0.0)",
    )
    server_parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to listen on (default: env PORT or 5000)",
    )
    server_parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable Flask debug mode with verbose error pages",
    )
    server_parser.set_defaults(command="server")

    # If no subcommand provided, default to generate
    if len(argv) == 0:
        argv = ["generate"]

    return parser.parse_args(argv)


_OVERRIDE_FIELDS = (
    "seed",
    "width",
    "height",
    "fill_percent",
    "automata_steps",
    "min_room_size",
    "corridor_algorithm",
    "corridor_width",
)


def build_config(args: argparse.Namespace):
    """Environment config with CLI flags applied on top."""
    from cavern.dungeon import GenerationConfig

    data = GenerationConfig.from_env().to_dict()
    for name in _OVERRIDE_FIELDS:
        val = getattr(args, name, None)
        if val is not None:
            data[name] = val
    if getattr(args, "no_noise", False):
        data["use_noise"] = False
    return GenerationConfig.from_mapping(data).validate()


def render_rows(rows: list[str]) -> str:
    if not _COLOR_ENABLED:
        return "\n".join(rows)
    palette = {
        "#": Style.DIM + Fore.WHITE,
        ".": Fore.GREEN,
        "+": Fore.YELLOW,
    }
    out = []
    for row in rows:
        out.append("".join(palette.get(ch, "") + ch for ch in row) + Style.RESET_ALL)
    return "\n".join(out)


def run_generate(args: argparse.Namespace) -> int:
    from cavern.dungeon import InvalidConfigError, generate_dungeon
    from cavern.logging_utils import log

    try:
        config = build_config(args)
    except InvalidConfigError as e:
        err = f"{Fore.RED}[ERROR]{Style.RESET_ALL}" if _COLOR_ENABLED else "[ERROR]"
        print(f"{err} {e}", file=sys.stderr)
        return EXIT_INVALID

    result = generate_dungeon(config)
    if getattr(args, "as_json", False):
        print(json.dumps(result.to_dict()))
    else:
        print(render_rows(result.rows()))
        summary = (
            f"seed={result.seed} rooms={len(result.rooms)} corridors={len(result.corridors)} "
            f"connected={'yes' if result.fully_connected else 'no'}"
        )
        print(f"{Fore.CYAN}{summary}{Style.RESET_ALL}" if _COLOR_ENABLED else summary)

    if not result.fully_connected:
        log.warn(event="cli_partial_connectivity", seed=result.seed, reason=result.failure_reason)
        if getattr(args, "strict", False):
            return EXIT_PARTIAL
    return EXIT_OK


def main(argv: list[str]) -> int:
    args = parse_args(argv)
    if getattr(args, "env_file", None):
        load_dotenv(args.env_file)
    else:
        # Load default .env if present (no error if missing)
        load_dotenv()

    mode = (getattr(args, "command", None) or "generate").lower()
    if mode == "generate":
        return run_generate(args)

    env_host = os.getenv("HOST", "0.0.0.0")
    env_port = int(os.getenv("PORT", "5000"))
    host = getattr(args, "host", None) or env_host
    port = int(getattr(args, "port", None) or env_port)
    debug = bool(getattr(args, "debug", False) or os.getenv("FLASK_DEBUG") == "1")

    def handle_sigint(sig, frame):
        print("\n[INFO] Shutting down server...")
        sys.exit(0)

    signal.signal(signal.SIGINT, handle_sigint)

    # Import server entrypoint only after environment is ready
    from cavern.logging_utils import log
    from cavern.server import start_server

    title = f"{Fore.CYAN}{Style.BRIGHT}Cavern API Server{Style.RESET_ALL}" if _COLOR_ENABLED else "Cavern API Server"

    def label(text: str) -> str:
        return f"{Fore.YELLOW}{text}{Style.RESET_ALL}" if _COLOR_ENABLED else text

    def value(val: str | int) -> str:
        return f"{Fore.GREEN}{val}{Style.RESET_ALL}" if _COLOR_ENABLED else str(val)

    divider = (Fore.MAGENTA + "=" * 40 + Style.RESET_ALL) if _COLOR_ENABLED else "=" * 40
    lines = [
        divider,
        f"  {title}",
        divider,
        f"  {label('Host:'):12} {value(host)}",
        f"  {label('Port:'):12} {value(port)}",
        f"  {label('Debug:'):12} {value('YES' if debug else 'NO')}",
        divider,
        "",
    ]
    print("\n".join(lines))
    log.info(event="startup", mode=mode, host=host, port=port)
    start_server(host=host, port=port, debug=debug)
    return EXIT_OK


def _console_main() -> int:
    return main(sys.argv[1:])


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
