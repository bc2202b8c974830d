import asyncio
import logging

from config.env import DISCOUNT_SWEEP_INTERVAL_SECONDS
from utils.discounts import sweep_expired_discounts

logger = logging.getLogger(__name__)


async def discount_expiry_worker(db, interval_seconds: int = DISCOUNT_SWEEP_INTERVAL_SECONDS):
    while True:
        try:
            cleared = await sweep_expired_discounts(db)
            if cleared:
                logger.info("DISCOUNT_SWEEP cleared=%s", cleared)
        except Exception:
            logger.exception("DISCOUNT_SWEEP_ERROR")

        await asyncio.sleep(interval_seconds)
