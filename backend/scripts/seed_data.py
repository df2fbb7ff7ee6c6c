"""
Seed the database with sample location types and locations.

Run with: python -m scripts.seed_data [--timezone Europe/Berlin]
"""

import argparse
import asyncio

from queuepulse.config import get_settings
from queuepulse.database import async_session_maker, init_db
from queuepulse.services.seed import seed_sample_data
from queuepulse.services.storage import DatabaseStorage
from queuepulse.utils.log_config import configure_logging


async def seed(timezone: str) -> None:
    """Create tables and insert sample data."""
    print("Initializing database...")
    await init_db()

    async with async_session_maker() as session:
        created = await seed_sample_data(DatabaseStorage(session), timezone=timezone)
        await session.commit()

    if created:
        print("Seed data created successfully.")
    else:
        print("Data already seeded, nothing to do.")


def main():
    settings = get_settings()
    configure_logging(settings.log_level)

    parser = argparse.ArgumentParser(description="Seed sample locations")
    parser.add_argument(
        "--timezone",
        default=settings.default_timezone,
        help="IANA timezone for the sample locations",
    )
    args = parser.parse_args()

    asyncio.run(seed(args.timezone))


if __name__ == "__main__":
    main()
