"""
Expire overdue listings. Meant to run from cron, e.g. every 10 minutes:

    */10 * * * * cd /srv/foodloop && python -m scripts.expire_listings
"""
import asyncio

from foodloop.database import engine, AsyncSessionLocal
from foodloop.services.listings import expire_overdue
from foodloop.utils.logger import configure_logging


async def main():
    configure_logging()
    async with AsyncSessionLocal() as session:
        count = await expire_overdue(session)
    await engine.dispose()
    print(f"Expired {count} listings")


if __name__ == "__main__":
    asyncio.run(main())
