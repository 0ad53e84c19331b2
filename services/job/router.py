"""
services/job/router.py
Job postings: sponsors draft, publish, pause, fill and delete their jobs;
everyone signed in can browse active ones.

Lifecycle:
    draft → active (publish, expires after JOB_EXPIRY_DAYS)
    active ⇄ paused
    active | paused → filled
    active → expired (Celery beat, see tasks/job_tasks.py)
    expired → active (republish)
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from config.hasura_client import HasuraClient, get_hasura
from config.settings import settings
from shared.middleware.auth import CurrentUser, get_current_user, require_sponsor
from shared.models.models import JobStatus, UserRole
from shared.schemas.schemas import JobCreateRequest, JobStatusRequest, JobUpdateRequest, MessageResponse

router = APIRouter(prefix="/jobs", tags=["Jobs"])

JOB_TRANSITIONS: dict[JobStatus, set[JobStatus]] = {
    JobStatus.DRAFT: {JobStatus.ACTIVE},
    JobStatus.ACTIVE: {JobStatus.PAUSED, JobStatus.FILLED},
    JobStatus.PAUSED: {JobStatus.ACTIVE, JobStatus.FILLED},
    JobStatus.EXPIRED: {JobStatus.ACTIVE},
    JobStatus.FILLED: set(),
}

EDITABLE_STATUSES = {JobStatus.DRAFT, JobStatus.ACTIVE, JobStatus.PAUSED}
DELETABLE_STATUSES = {JobStatus.DRAFT, JobStatus.PAUSED, JobStatus.EXPIRED}

JOB_FIELDS = """
    id
    sponsor_id
    title
    description
    location
    salary_min
    salary_max
    currency
    required_skills
    status
    published_at
    expires_at
    created_at
    updated_at
"""

GET_JOBS = f"""
query GetJobs($where: jobs_bool_exp!, $limit: Int, $offset: Int) {{
  jobs(where: $where, order_by: {{created_at: desc}}, limit: $limit, offset: $offset) {{
    {JOB_FIELDS}
  }}
  jobs_aggregate(where: $where) {{
    aggregate {{
      count
    }}
  }}
}}
"""

GET_JOB = f"""
query GetJob($id: uuid!) {{
  jobs_by_pk(id: $id) {{
    {JOB_FIELDS}
  }}
}}
"""

CREATE_JOB = f"""
mutation CreateJob($data: jobs_insert_input!) {{
  insert_jobs_one(object: $data) {{
    {JOB_FIELDS}
  }}
}}
"""

UPDATE_JOB = f"""
mutation UpdateJob($id: uuid!, $data: jobs_set_input!) {{
  update_jobs_by_pk(pk_columns: {{id: $id}}, _set: $data) {{
    {JOB_FIELDS}
  }}
}}
"""

DELETE_JOB = """
mutation DeleteJob($id: uuid!) {
  delete_jobs_by_pk(id: $id) {
    id
  }
}
"""


# ── Helpers ───────────────────────────────────────────────────

def _now() -> datetime:
    return datetime.now(timezone.utc)


def is_expired(job: dict, now: Optional[datetime] = None) -> bool:
    expires_at = job.get("expires_at")
    if not expires_at:
        return False
    if isinstance(expires_at, str):
        expires_at = datetime.fromisoformat(expires_at.replace("Z", "+00:00"))
    return expires_at <= (now or _now())


def transition_fields(job: dict, target: JobStatus) -> dict:
    """Columns to set for a lifecycle move; raises 400 on an illegal one."""
    current = JobStatus(job["status"])
    if target not in JOB_TRANSITIONS[current]:
        raise HTTPException(
            status_code=400,
            detail=f"Cannot move job from {current.value} to {target.value}",
        )

    fields = {"status": target.value, "updated_at": _now().isoformat()}
    if target == JobStatus.ACTIVE and current in (JobStatus.DRAFT, JobStatus.EXPIRED):
        fields["published_at"] = _now().isoformat()
        fields["expires_at"] = (_now() + timedelta(days=settings.JOB_EXPIRY_DAYS)).isoformat()
    elif target == JobStatus.ACTIVE and is_expired(job):
        raise HTTPException(status_code=400, detail="Job has expired. Republish it instead.")
    return fields


async def _get_own_job(gql: HasuraClient, current_user: CurrentUser, job_id: str) -> dict:
    data = await gql.execute(GET_JOB, {"id": job_id}, token=current_user.token)
    job = data.get("jobs_by_pk")
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    if job["sponsor_id"] != current_user.id and current_user.role != UserRole.ADMIN:
        raise HTTPException(status_code=403, detail="Access denied")
    return job


def _page(data: dict, page: int, page_size: int) -> dict:
    total = ((data.get("jobs_aggregate") or {}).get("aggregate") or {}).get("count") or 0
    return {
        "items": data.get("jobs") or [],
        "total": total,
        "page": page,
        "page_size": page_size,
        "total_pages": -(-total // page_size),
    }


# ── Browse ────────────────────────────────────────────────────

@router.get("")
async def list_active_jobs(
    search: Optional[str] = Query(None, max_length=200),
    location: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=50),
    current_user: CurrentUser = Depends(get_current_user),
    gql: HasuraClient = Depends(get_hasura),
):
    """Active, unexpired job postings."""
    where: dict = {
        "status": {"_eq": JobStatus.ACTIVE.value},
        "expires_at": {"_gt": _now().isoformat()},
    }
    if search and search.strip():
        term = f"%{search.strip()}%"
        where["_or"] = [{"title": {"_ilike": term}}, {"description": {"_ilike": term}}]
    if location:
        where["location"] = {"_ilike": f"%{location}%"}

    data = await gql.execute(
        GET_JOBS,
        {"where": where, "limit": page_size, "offset": (page - 1) * page_size},
        token=current_user.token,
    )
    return _page(data, page, page_size)


@router.get("/mine")
async def list_my_jobs(
    status_filter: Optional[JobStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=50),
    current_user: CurrentUser = Depends(require_sponsor),
    gql: HasuraClient = Depends(get_hasura),
):
    where: dict = {"sponsor_id": {"_eq": current_user.id}}
    if status_filter:
        where["status"] = {"_eq": status_filter.value}
    data = await gql.execute(
        GET_JOBS,
        {"where": where, "limit": page_size, "offset": (page - 1) * page_size},
        token=current_user.token,
    )
    return _page(data, page, page_size)


@router.get("/{job_id}")
async def get_job(
    job_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    gql: HasuraClient = Depends(get_hasura),
):
    data = await gql.execute(GET_JOB, {"id": job_id}, token=current_user.token)
    job = data.get("jobs_by_pk")
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    # Non-owners only see jobs that are live
    if job["sponsor_id"] != current_user.id and current_user.role != UserRole.ADMIN:
        if job["status"] != JobStatus.ACTIVE.value or is_expired(job):
            raise HTTPException(status_code=404, detail="Job not found")
    return job


# ── Sponsor ───────────────────────────────────────────────────

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_job(
    data: JobCreateRequest,
    current_user: CurrentUser = Depends(require_sponsor),
    gql: HasuraClient = Depends(get_hasura),
):
    """New jobs start as drafts; publishing is a separate step."""
    job = {
        **data.model_dump(),
        "sponsor_id": current_user.id,
        "status": JobStatus.DRAFT.value,
    }
    result = await gql.execute(CREATE_JOB, {"data": job}, token=current_user.token)
    return result.get("insert_jobs_one")


@router.patch("/{job_id}")
async def update_job(
    job_id: str,
    data: JobUpdateRequest,
    current_user: CurrentUser = Depends(require_sponsor),
    gql: HasuraClient = Depends(get_hasura),
):
    job = await _get_own_job(gql, current_user, job_id)
    if JobStatus(job["status"]) not in EDITABLE_STATUSES:
        raise HTTPException(status_code=400, detail=f"Cannot edit a {job['status']} job")

    changes = data.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No changes supplied")
    low = changes.get("salary_min", job.get("salary_min"))
    high = changes.get("salary_max", job.get("salary_max"))
    if low is not None and high is not None and high < low:
        raise HTTPException(status_code=400, detail="salary_max must be >= salary_min")
    changes["updated_at"] = _now().isoformat()

    result = await gql.execute(UPDATE_JOB, {"id": job_id, "data": changes}, token=current_user.token)
    return result.get("update_jobs_by_pk")


@router.post("/{job_id}/status")
async def change_job_status(
    job_id: str,
    data: JobStatusRequest,
    current_user: CurrentUser = Depends(require_sponsor),
    gql: HasuraClient = Depends(get_hasura),
):
    """Publish, pause, resume or mark a job filled."""
    target = JobStatus(data.status)
    if target == JobStatus.EXPIRED:
        raise HTTPException(status_code=400, detail="Jobs expire automatically")

    job = await _get_own_job(gql, current_user, job_id)
    fields = transition_fields(job, target)
    result = await gql.execute(UPDATE_JOB, {"id": job_id, "data": fields}, token=current_user.token)
    return result.get("update_jobs_by_pk")


@router.delete("/{job_id}", response_model=MessageResponse)
async def delete_job(
    job_id: str,
    current_user: CurrentUser = Depends(require_sponsor),
    gql: HasuraClient = Depends(get_hasura),
):
    job = await _get_own_job(gql, current_user, job_id)
    if JobStatus(job["status"]) not in DELETABLE_STATUSES:
        raise HTTPException(status_code=400, detail=f"Cannot delete a {job['status']} job. Pause it first.")
    await gql.execute(DELETE_JOB, {"id": job_id}, token=current_user.token)
    return MessageResponse(message="Job deleted")
