from campus_market.database import async_session_maker
from campus_market.services.wallet_service import wallet_service
from campus_market.services.withdrawal_service import withdrawal_service
import logging

logger = logging.getLogger(__name__)


async def process_held_funds() -> int:
    """Release every hold whose hold period has ended"""
    async with async_session_maker() as db:
        released = await wallet_service.release_held_funds(db)

    if released:
        logger.info(f"Held funds sweep released {len(released)} holds: {[t.id for t in released]}")
    else:
        logger.info("Held funds sweep: nothing to release")
    return len(released)


async def process_pending_withdrawals() -> int:
    """Report the payout queue; payouts themselves are approved by an admin"""
    async with async_session_maker() as db:
        pending = await withdrawal_service.list_pending(db)

    logger.info(f"{len(pending)} withdrawals awaiting review")
    return len(pending)


async def run_all_jobs() -> dict:
    results = {
        "held_funds_processed": 0,
        "pending_withdrawals_processed": 0,
        "errors": [],
    }

    try:
        results["held_funds_processed"] = await process_held_funds()
    except Exception as e:
        logger.error(f"Error processing held funds: {e}", exc_info=True)
        results["errors"].append(f"Held funds processing failed: {e}")

    try:
        results["pending_withdrawals_processed"] = await process_pending_withdrawals()
    except Exception as e:
        logger.error(f"Error processing pending withdrawals: {e}", exc_info=True)
        results["errors"].append(f"Withdrawal processing failed: {e}")

    return results
