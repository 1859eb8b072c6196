from __future__ import annotations

import argparse

from natours.connections.mongo import close_mongo, init_mongo
from natours.services.tour_stats import get_monthly_plan, get_tour_stats
from natours.simulation.seed import clear_data, seed
from natours.utils.config import settings
from natours.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Load or clear natours dev data")
    parser.add_argument("--delete", action="store_true", help="remove all users and tours instead of seeding")
    parser.add_argument("--year", type=int, default=2021, help="year for the monthly plan report")
    args = parser.parse_args(argv)

    configure_logging("DEBUG" if settings.debug else settings.log_level)
    init_mongo()
    try:
        if args.delete:
            clear_data()
            logger.info("Dev data deleted")
            return
        seed()
        for row in get_tour_stats():
            logger.info("Stats %s", row)
        for row in get_monthly_plan(args.year):
            logger.info("Plan %s", row)
    finally:
        close_mongo()


if __name__ == "__main__":
    main()
