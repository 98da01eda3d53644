from __future__ import annotations

import argparse
import logging
from copy import deepcopy
from typing import Any

import uvicorn

from app.config import load_config
from app.demo_menus import build_router
from dispatch.engine_factory import create_engine
from store.memory_store import InMemorySessionStore
from testkit.simulator import Simulator
from transport.http_api import create_api

DEFAULT_CONFIG_PATH = "config.yaml"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="USSD menu gateway")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP gateway")
    serve_parser.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="Path to config.yaml or config.json")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8080)

    simulate_parser = subparsers.add_parser("simulate", help="Run one scripted session against the demo menus")
    simulate_parser.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="Path to config.yaml or config.json")
    simulate_parser.add_argument("--msisdn", default="+258840000001")
    simulate_parser.add_argument("--inputs", default="", help="Comma-separated inputs, e.g. 2,50,1")

    routes_parser = subparsers.add_parser("routes", help="List registered screen paths")
    routes_parser.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="Path to config.yaml or config.json")

    return parser


def configure_logging(config: dict[str, Any]) -> None:
    level_name = str(config.get("logging", {}).get("level", "INFO") or "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def cmd_serve(args: argparse.Namespace, config: dict[str, Any]) -> int:
    engine = create_engine(config, build_router(config))
    api = create_api(engine, config)
    uvicorn.run(api, host=args.host, port=int(args.port))
    return 0


def cmd_simulate(args: argparse.Namespace, config: dict[str, Any]) -> int:
    runtime_config = deepcopy(config)
    # scripted runs never need request signatures
    runtime_config.setdefault("middleware", {})["hmac_secret"] = None
    inputs = [token.strip() for token in args.inputs.split(",") if token.strip()]

    store = InMemorySessionStore(
        default_ttl_seconds=float(runtime_config.get("session_store", {}).get("default_ttl_seconds", 60) or 60),
        start_sweeper=False,
    )
    with store:
        engine = create_engine(runtime_config, build_router(runtime_config), store=store)
        simulator = Simulator(engine).start(args.msisdn)
        print(f"> (dial)\n{simulator.last.wire_text()}")
        for token in inputs:
            if not simulator.last.continue_session:
                print(f"session ended; ignoring remaining inputs from {token!r}")
                break
            simulator.send_accumulated(token)
            print(f"> {token}\n{simulator.last.wire_text()}")
    return 0


def cmd_routes(config: dict[str, Any]) -> int:
    router = build_router(config)
    print(f"start: {router.start_path}")
    for route in router.table.routes():
        kinds = [name for name, handler in (("display", route.display), ("input", route.on_input)) if handler]
        print(f"{route.pattern} [{', '.join(kinds)}]")
    return 0


def main() -> int:
    parser = build_parser()
    args = parser.parse_args()
    config = load_config(args.config)
    configure_logging(config)

    if args.command == "serve":
        return cmd_serve(args, config)
    if args.command == "simulate":
        return cmd_simulate(args, config)
    if args.command == "routes":
        return cmd_routes(config)

    parser.print_help()
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
