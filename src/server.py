"""Reconciliation sweep runner.

Runs the order sync on a fixed interval, alongside the API process. Each
pass runs in a worker thread with its own domain context so a slow gateway
never blocks the loop's timer.

Usage:
    python src/server.py                 # Sweep every ORDER_SYNC_INTERVAL seconds
    python src/server.py --once          # Single sweep, then exit
    python src/server.py --interval 60   # Override the interval
"""

import argparse
import asyncio

import structlog

logger = structlog.get_logger(__name__).bind(component="order_sync_runner")


def _get_domain():
    from storefront.domain import storefront

    storefront.init()
    return storefront


def sweep_once(domain) -> dict:
    from storefront.gateway import get_gateway
    from storefront.order.sweeper import sync_pending_orders

    with domain.domain_context():
        return sync_pending_orders(get_gateway()).to_dict()


async def run(interval: int):
    from storefront.order.sweeper import config

    domain = _get_domain()
    logger.info("Order sync loop started", interval=interval, enabled=config.ENABLED)

    if not config.ENABLED:
        logger.info("Order sync loop disabled via config")
        return

    while True:
        try:
            report = await asyncio.to_thread(sweep_once, domain)
            logger.info("Scheduled order sync complete", **report)
        except Exception as exc:
            logger.exception("Scheduled order sync crashed", error=str(exc))

        await asyncio.sleep(interval)


def main():
    from storefront.order.sweeper import config

    parser = argparse.ArgumentParser(description="Storefront order sync runner")
    parser.add_argument("--once", action="store_true", help="Run a single sweep and exit")
    parser.add_argument("--interval", type=int, default=config.INTERVAL, help="Seconds between sweeps")
    args = parser.parse_args()

    if args.once:
        report = sweep_once(_get_domain())
        print(f"synced={report['synced']} failed={report['failed']} skipped={report['skipped']}")
        return

    asyncio.run(run(args.interval))


if __name__ == "__main__":
    main()
