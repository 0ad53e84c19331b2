"""
tasks/job_tasks.py
Periodic job-posting housekeeping. Runs with the admin secret, not a user token.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from config.hasura_client import HasuraError, execute_sync
from shared.models.models import JobStatus
from tasks.celery_app import celery_app

logger = logging.getLogger(__name__)

EXPIRE_JOBS = """
mutation ExpireJobs($now: timestamptz!, $updatedAt: timestamptz!, $active: String!, $expired: String!) {
  update_jobs(
    where: {status: {_eq: $active}, expires_at: {_lt: $now}},
    _set: {status: $expired, updated_at: $updatedAt}
  ) {
    affected_rows
    returning {
      id
    }
  }
}
"""


def expire_overdue_jobs(now: Optional[datetime] = None) -> list[str]:
    """Flip every active job whose expires_at has passed to expired. Returns the ids."""
    now = now or datetime.now(timezone.utc)
    stamp = now.isoformat()
    data = execute_sync(EXPIRE_JOBS, {
        "now": stamp,
        "updatedAt": stamp,
        "active": JobStatus.ACTIVE.value,
        "expired": JobStatus.EXPIRED.value,
    })
    result = data.get("update_jobs") or {}
    ids = [row["id"] for row in result.get("returning") or []]
    if ids:
        logger.info(f"Expired {len(ids)} job(s): {', '.join(ids)}")
    return ids


@celery_app.task(
    name="tasks.job_tasks.expire_jobs",
    bind=True,
    max_retries=3,
    default_retry_delay=300,
)
def expire_jobs(self):
    try:
        ids = expire_overdue_jobs()
    except HasuraError as exc:
        logger.error(f"Job expiry sweep failed: {exc}")
        raise self.retry(exc=exc)
    return {"expired": len(ids)}
