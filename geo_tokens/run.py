"""
CLI entry: play on the map, or let the explorer bot play headless.

    python -m geo_tokens.run play  [--movement buttons|geolocation --track fixes.csv]
    python -m geo_tokens.run explore --steps 2000 --seed 3
    python -m geo_tokens.run track fixes.csv
"""
from typing import List, Optional
from dataclasses import replace
import argparse
import logging
import sys

from .errors import ConfigError
from .movement import read_track
from .persist import JsonFileStorage, MemoryStorage
from .world import WorldConfig, load_config

logger = logging.getLogger(__name__)

DEFAULT_SAVE = "geo_tokens_save.json"


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="geo-tokens", description=__doc__.strip().splitlines()[0])
    p.add_argument("--config", help="JSON file of WorldConfig fields")
    p.add_argument("--seed", type=int, help="world seed")
    p.add_argument("--target", type=int, dest="target_value", help="token value that wins")
    p.add_argument("--save", default=DEFAULT_SAVE, help="save file (default: %(default)s)")
    p.add_argument("--no-save", action="store_true", help="keep the game in memory only")
    p.add_argument("--log-level", default="INFO",
                   choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    sub = p.add_subparsers(dest="command", required=True)

    play = sub.add_parser("play", help="interactive map")
    play.add_argument("--movement", choices=["buttons", "geolocation"], default="buttons")
    play.add_argument("--track", help="CSV of lat,lng fixes fed in geolocation mode")
    play.add_argument("--fps", type=int, default=10)

    explore = sub.add_parser("explore", help="headless greedy explorer")
    explore.add_argument("--steps", type=int, default=500)
    explore.add_argument("--bot-seed", type=int, default=7)
    explore.add_argument("--keep-going", action="store_true", help="do not stop at victory")

    track = sub.add_parser("track", help="replay a recorded position track headless")
    track.add_argument("path", help="CSV of lat,lng fixes")
    return p


def make_config(args: argparse.Namespace) -> WorldConfig:
    overrides = {"seed": args.seed, "target_value": args.target_value}
    if args.config:
        return load_config(args.config, **overrides)
    return replace(WorldConfig(), **{k: v for k, v in overrides.items() if v is not None})


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        cfg = make_config(args)
    except ConfigError as e:
        parser.error(str(e))
    storage = MemoryStorage() if args.no_save else JsonFileStorage(args.save)

    if args.command == "play":
        from .viewer import run_live
        fixes = read_track(args.track) if args.track else None
        run_live(cfg, storage, movement=args.movement, track=fixes, fps=args.fps)
        return 0

    from .runner import explore, replay_track
    if args.command == "explore":
        stats = explore(args.steps, args.bot_seed, cfg, storage, stop_on_win=not args.keep_going)
    else:
        stats = replay_track(read_track(args.path), cfg, storage)
    for k, v in stats.items():
        print(f"{k:>14}: {v}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
