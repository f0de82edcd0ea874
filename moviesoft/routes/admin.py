"""
Admin Routes for Background Jobs Management
Provides endpoints to monitor and trigger upload maintenance

Features:
- Manual reconciliation trigger
- Job status monitoring
"""

from fastapi import APIRouter, HTTPException, status
from moviesoft.services.background_jobs import background_jobs
from datetime import datetime, timezone

router = APIRouter(prefix="/api/admin", tags=["Admin - Background Jobs"])


@router.post("/jobs/trigger/reconcile", status_code=status.HTTP_200_OK)
def trigger_reconcile_uploads():
    """
    Manually trigger upload reconciliation

    - Deletes uploaded files no movie references (older than the grace period)
    - Reports movies whose uploaded files are missing
    """
    result = background_jobs.reconcile_uploads()
    if result is None:
        stats = background_jobs.job_stats['reconcile_uploads']
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to reconcile uploads: {stats['error']}"
        )

    return {
        "message": "Upload reconciliation completed",
        "job": "reconcile_uploads",
        "scanned": result["scanned"],
        "removed": result["removed"],
        "kept_recent": result["kept_recent"],
        "missing": result["missing"],
        "triggered_at": datetime.now(timezone.utc).isoformat()
    }


@router.get("/jobs/status", status_code=status.HTTP_200_OK)
def get_jobs_status():
    """
    Get status of all background jobs

    Returns:
    - Job IDs and names
    - Next run times
    - Last execution times and results
    - Current status (idle/running/success/failed)
    """
    stats = background_jobs.get_job_stats()
    return {
        "scheduler_running": stats['scheduler_running'],
        "timezone": stats['timezone'],
        "jobs": stats['jobs'],
        "checked_at": datetime.now(timezone.utc).isoformat()
    }
