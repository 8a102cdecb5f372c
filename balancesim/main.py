from __future__ import annotations

import argparse
import json
import logging
from typing import Any, Dict

from .config import PERSONAS, SimulationConfig, get_persona
from .constants import DEFAULT_SEED
from .engine import SimulationEngine
from .renderer import RunReporter


def parse_override(text: str) -> tuple[str, Any]:
    """Split ``path=value``; the value is a JSON literal when it parses."""
    path, sep, raw = text.partition("=")
    if not sep or not path:
        raise argparse.ArgumentTypeError(f"expected path=value, got {text!r}")
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        value = raw
    return path.strip(), value


def main(argv: list[str] | None = None) -> None:
    """Entry point parsed from command line."""
    parser = argparse.ArgumentParser(description="Run a game balance simulation")
    parser.add_argument(
        "--persona", default="casual", choices=sorted(PERSONAS), help="Player persona"
    )
    parser.add_argument("--days", type=int, default=35, help="Days to simulate")
    parser.add_argument("--seed", type=int, default=DEFAULT_SEED, help="Random seed")
    parser.add_argument(
        "--set",
        dest="overrides",
        action="append",
        type=parse_override,
        default=[],
        metavar="PATH=VALUE",
        help="Override a parameter by dot path",
    )
    parser.add_argument(
        "--strict", action="store_true", help="Stop on any invariant violation"
    )
    parser.add_argument(
        "--no-color", action="store_true", help="Disable colored output"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose logging"
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    overrides: Dict[str, Any] = dict(args.overrides)
    config = SimulationConfig(
        persona=get_persona(args.persona),
        seed=args.seed,
        max_days=args.days,
        strict=args.strict,
    ).with_overrides(overrides)

    engine = SimulationEngine(config)
    reporter = RunReporter(use_color=not args.no_color)
    result = engine.run(on_tick=reporter.on_tick)
    reporter.finish(result, engine.identify_bottleneck())


if __name__ == "__main__":
    main()
