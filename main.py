import asyncio
import logging

from agile_prices.price_repository import FetchError, PriceRepository
from agile_prices.refresh_loop import LoggingDisplaySink, RefreshLoop

logger = logging.getLogger()
logger.setLevel(logging.INFO)
handler = logging.StreamHandler()
handler.setFormatter(logging.Formatter('%(levelname)s %(message)s'))
logger.addHandler(handler)
logging.getLogger('asyncio').setLevel(logging.WARNING)


async def watch(series):
    loop = RefreshLoop(LoggingDisplaySink())
    loop.set_series(series)
    loop.start()
    try:
        await asyncio.Event().wait()
    finally:
        loop.stop()


def main():
    try:
        series = PriceRepository().fetch()
    except FetchError as e:
        logger.error(f"Error fetching prices: {e}")
        return 1

    try:
        asyncio.run(watch(series))
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
