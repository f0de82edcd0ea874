"""
Background Jobs Service for upload maintenance
Periodically reconciles the upload store against the movies table

Features:
- Scheduled jobs using APScheduler
- Configurable timezone
- Job monitoring and statistics
- Error handling and logging
"""

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.orm import Session
from moviesoft.database import SessionLocal
from moviesoft.services.reconcile_service import reconcile_uploads
from moviesoft.services.upload_store import upload_store
from datetime import datetime
import logging
import os
from typing import Dict, Optional
from pytz import timezone

logger = logging.getLogger(__name__)

JOB_IDS = ['reconcile_uploads']


class BackgroundJobService:
    """
    Manages scheduled maintenance jobs

    Jobs:
    - Reconcile uploads (hourly at :30)

    Usage:
        jobs = BackgroundJobService()
        jobs.start()  # Start all scheduled jobs
        jobs.shutdown()  # Stop all jobs gracefully
    """

    def __init__(self):
        """Initialize scheduler with timezone configuration"""
        tz_name = os.getenv("TIMEZONE", "UTC")
        self.timezone = timezone(tz_name)
        self.scheduler = BackgroundScheduler(timezone=self.timezone)

        # Track job execution statistics
        self.job_stats = {
            job_id: {'last_run': None, 'status': 'idle', 'error': None, 'result': None}
            for job_id in JOB_IDS
        }

    def start(self):
        """
        Start all scheduled background jobs

        Jobs are only started if ENABLE_BACKGROUND_JOBS=true in environment
        """
        if os.getenv("ENABLE_BACKGROUND_JOBS", "true").lower() != "true":
            logger.info("Background jobs disabled via ENABLE_BACKGROUND_JOBS environment variable")
            return

        self.scheduler.add_job(
            func=self.reconcile_uploads,
            trigger=CronTrigger(minute=30, timezone=self.timezone),
            id='reconcile_uploads',
            name='Remove orphaned uploads',
            replace_existing=True,
            max_instances=1  # Prevent concurrent runs
        )
        logger.info("Scheduled: Reconcile uploads (hourly at :30)")

        self.scheduler.start()
        logger.info(f"Background jobs started (timezone: {self.timezone}, jobs: {len(self.scheduler.get_jobs())})")

    def shutdown(self):
        """Shutdown scheduler gracefully"""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=True)
            logger.info("Background jobs stopped gracefully")

    def get_job_stats(self) -> Dict:
        """
        Get statistics for all jobs including next run times

        Jobs that were never scheduled (scheduler disabled) are still listed
        so manual triggers show up.
        """
        scheduled = {job.id: job for job in self.scheduler.get_jobs()}
        jobs_info = []
        for job_id, stats in self.job_stats.items():
            job = scheduled.get(job_id)
            next_run = getattr(job, 'next_run_time', None) if job else None
            jobs_info.append({
                'id': job_id,
                'name': job.name if job else job_id,
                'scheduled': job is not None,
                'next_run': next_run.isoformat() if next_run else None,
                'last_run': stats.get('last_run'),
                'status': stats.get('status', 'idle'),
                'error': stats.get('error'),
                'result': stats.get('result')
            })

        return {
            'scheduler_running': self.scheduler.running,
            'timezone': str(self.timezone),
            'jobs': jobs_info
        }

    # ============================================
    # Main Job Methods
    # ============================================

    def reconcile_uploads(self, grace_minutes: Optional[int] = None) -> Optional[Dict]:
        """
        Remove uploads no movie references and report missing files

        Returns the reconciliation summary, or None if the run failed.
        """
        job_id = 'reconcile_uploads'
        self.job_stats[job_id]['status'] = 'running'
        self.job_stats[job_id]['error'] = None

        db: Session = SessionLocal()
        start_time = datetime.now()

        try:
            logger.info(f"[{job_id}] Starting upload reconciliation...")

            result = reconcile_uploads(db, upload_store, grace_minutes=grace_minutes)
            elapsed = (datetime.now() - start_time).total_seconds()

            logger.info(
                f"[{job_id}] Completed in {elapsed:.2f}s - scanned {result['scanned']}, "
                f"removed {len(result['removed'])}, missing {len(result['missing'])}"
            )

            self.job_stats[job_id]['status'] = 'success'
            self.job_stats[job_id]['result'] = {
                'scanned': result['scanned'],
                'removed': len(result['removed']),
                'kept_recent': result['kept_recent'],
                'missing': len(result['missing'])
            }
            return result

        except Exception as e:
            elapsed = (datetime.now() - start_time).total_seconds()
            error_msg = str(e)

            logger.error(f"[{job_id}] Failed after {elapsed:.2f}s: {error_msg}", exc_info=True)

            self.job_stats[job_id]['status'] = 'failed'
            self.job_stats[job_id]['error'] = error_msg
            return None

        finally:
            self.job_stats[job_id]['last_run'] = datetime.now().isoformat()
            db.close()


# Global singleton instance
background_jobs = BackgroundJobService()
