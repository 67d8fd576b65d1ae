"""Command-line entry point for batch predictions."""

import argparse
import asyncio
import json
import logging
import sys
from datetime import date, datetime, timezone

from mlbforecast.config import get_config
from mlbforecast.db import close_pool, get_pool
from mlbforecast.scheduler.pipeline import BatchResult, run_predictions


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="mlbforecast",
        description="Predict scheduled MLB games and store one prediction per game.",
    )
    target = parser.add_mutually_exclusive_group()
    target.add_argument(
        "--date",
        type=date.fromisoformat,
        help="Predict every scheduled game on this date (YYYY-MM-DD, default today UTC)",
    )
    target.add_argument(
        "--game-id",
        type=int,
        action="append",
        dest="game_ids",
        help="Predict this game (repeatable)",
    )
    parser.add_argument(
        "--iterations",
        type=int,
        default=None,
        help="Monte Carlo trials per game (default: DEFAULT_ITERATIONS setting)",
    )
    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> BatchResult:
    """
    Boot the pool, run the batch, and shut down.

    Raises:
        SystemExit: On configuration or database errors
    """
    logger = logging.getLogger(__name__)

    try:
        config = get_config()
        logger.info(f"Configuration loaded: env={config.env}")
        pool = await get_pool()
    except Exception as e:
        logger.error(f"Boot sequence failed: {e}")
        raise SystemExit(1) from e

    try:
        game_date = args.date
        if args.game_ids is None and game_date is None:
            game_date = datetime.now(timezone.utc).date()
        return await run_predictions(
            game_ids=args.game_ids,
            game_date=game_date,
            iterations=args.iterations,
            pool=pool,
        )
    finally:
        await close_pool()
        logger.info("Application shutdown complete")


def main(argv: list[str] | None = None) -> None:
    """Main entry point with logging configuration."""
    args = parse_args(argv)

    config = get_config()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        batch = asyncio.run(run(args))
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
        sys.exit(0)
    except SystemExit:
        raise
    except Exception as e:
        logging.error(f"Unexpected error: {e}")
        sys.exit(1)

    # Explicit games print one response body each; a date run prints the batch summary
    output = batch.responses if args.game_ids is not None else batch.to_dict()
    print(json.dumps(output, indent=2))
    sys.exit(0 if batch.errors == 0 else 2)


if __name__ == "__main__":
    main()
