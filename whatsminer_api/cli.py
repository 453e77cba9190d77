from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Optional

from .core import DEFAULT_PORT, DEFAULT_TIMEOUT, call_whatsminer, load_miner_conf, resolve_param_inputs
from .errors import WhatsminerError
from .logs import DEFAULT_LOG_EXTENSION, download_logs
from .protocol import PRIVILEGED_COMMANDS
from .session import get_token


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Whatsminer btminer API client. Use miner-conf.json or CLI args for connection credentials."
    )
    parser.add_argument("--config", "-c", default="miner-conf.json", help="Path to miner-conf.json (default: miner-conf.json)")
    parser.add_argument("--host", help="Miner host (overrides config)")
    parser.add_argument("--port", type=int, help=f"Miner TCP port (default {DEFAULT_PORT})")
    parser.add_argument("--password", help="Admin password, needed for privileged commands (overrides config)")
    parser.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT, help="Socket timeout seconds (0 waits forever)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log protocol steps to stderr")

    sub = parser.add_subparsers(dest="action", required=True)

    sub.add_parser("token", help="Call get_token and show time/salt/newsalt")

    callp = sub.add_parser("call", help="Call any API command")
    callp.add_argument("cmd", help="Command name, e.g., summary or reboot")

    group = callp.add_mutually_exclusive_group()
    group.add_argument("--param", action="append", metavar="KEY=VALUE", help="Command field, repeatable. Example: --param percent=50")
    group.add_argument("--param-json", help="Fields as a JSON object. Example: --param-json '{\"pool1\":\"stratum+tcp://...\"}'")
    group.add_argument("--param-file", help="Fields from a JSON object file. Example: --param-file pools.json")

    callp.add_argument("--check", action="store_true", help="Exit with an error when the miner answers STATUS E")
    callp.add_argument("--save-response", help="Save response JSON to file")

    logp = sub.add_parser("download-logs", help="Download the miner log archive")
    logp.add_argument("--name", help="Base file name (default: timestamped)")
    logp.add_argument("--ext", default=DEFAULT_LOG_EXTENSION, help=f"File extension (default {DEFAULT_LOG_EXTENSION})")
    logp.add_argument("--dir", default=".", help="Destination directory")

    return parser


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = build_parser()
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    conf = load_miner_conf(args.config)
    host = args.host or conf.get("host")
    port = args.port or conf.get("port") or DEFAULT_PORT
    password = args.password or conf.get("password")
    timeout = args.timeout or None

    if host is None:
        print("Error: host must be supplied either via CLI or miner-conf.json", file=sys.stderr)
        build_parser().print_help()
        return 2
    needs_password = args.action == "download-logs" or (args.action == "call" and args.cmd in PRIVILEGED_COMMANDS)
    if needs_password and password is None:
        print("Error: password must be supplied either via CLI or miner-conf.json", file=sys.stderr)
        return 2

    try:
        if args.action == "token":
            token = get_token(host, port, timeout=timeout)
            print(json.dumps({"time": token.time, "salt": token.salt, "newsalt": token.newsalt}, indent=2))
            return 0

        if args.action == "download-logs":
            result = download_logs(host, port, password, basename=args.name, extension=args.ext, directory=args.dir, timeout=timeout)
            print(json.dumps(result.header, indent=2, ensure_ascii=False))
            if result.path:
                print(f"Saved {result.size} bytes to {result.path}")
            return 0

        params = resolve_param_inputs(args.param, args.param_json, args.param_file)
        resp = call_whatsminer(host, port, args.cmd, params, password=password, timeout=timeout, check=args.check)
        print(json.dumps(resp, indent=2, ensure_ascii=False))
        if args.save_response:
            with open(args.save_response, "w", encoding="utf-8") as f:
                json.dump(resp, f, indent=2, ensure_ascii=False)
            print("Saved response to", args.save_response)
    except (WhatsminerError, ValueError, OSError) as exc:
        print("Error while calling API:", exc, file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
