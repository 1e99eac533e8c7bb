"""Manual triggers for the background jobs"""
from fastapi import APIRouter, Depends
from campus_market.api.deps import get_current_admin
from campus_market.tasks import jobs
import logging

router = APIRouter(dependencies=[Depends(get_current_admin)])
logger = logging.getLogger(__name__)


@router.post("/process-held-funds")
async def process_held_funds():
    released = await jobs.process_held_funds()
    return {"message": "Held funds processed", "released_count": released}


@router.post("/process-pending-withdrawals")
async def process_pending_withdrawals():
    pending = await jobs.process_pending_withdrawals()
    return {"message": "Pending withdrawals processed", "pending_count": pending}


@router.post("/run-all-jobs")
async def run_all_jobs():
    results = await jobs.run_all_jobs()
    if results["errors"]:
        logger.warning(f"Scheduled jobs finished with errors: {results['errors']}")
    return {"message": "All jobs executed", "results": results}
