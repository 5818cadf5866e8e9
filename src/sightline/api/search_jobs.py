"""
Background search job API.

A small control plane for searches that should not hold a request open:
- start a background search
- poll its status/outcome
- cancel it (observed at the next chunk boundary)

Jobs live in memory only; finished jobs beyond `jobs.max_finished_jobs` are evicted
oldest first.
"""

from __future__ import annotations

import threading

from fastapi import APIRouter, HTTPException

from sightline.api import routes
from sightline.config.settings import get_settings
from sightline.domain.models import SearchJobStatus, SightLineRequest, SightLineResponse
from sightline.search.jobs import SearchJob

router = APIRouter()

_jobs: dict[str, SearchJob] = {}
_jobs_lock = threading.Lock()


def _evict_finished() -> None:
    limit = int(get_settings().jobs.max_finished_jobs)
    finished = sorted(
        (job for job in _jobs.values() if job.done),
        key=lambda job: job.finished_at_unix or 0,
    )
    for job in finished[: max(0, len(finished) - limit)]:
        _jobs.pop(job.job_id, None)


def _get_job(job_id: str) -> SearchJob:
    with _jobs_lock:
        job = _jobs.get(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail={"code": "JOB_NOT_FOUND", "message": "Job not found."})
    return job


def _job_status(job: SearchJob) -> SearchJobStatus:
    outcome = job.outcome
    return SearchJobStatus(
        job_id=job.job_id,
        status=job.status,
        created_at_unix=job.created_at_unix,
        finished_at_unix=job.finished_at_unix,
        result=SightLineResponse.from_outcome(outcome) if outcome is not None else None,
    )


@router.post("/api/searches", response_model=SearchJobStatus)
def start_search(req: SightLineRequest) -> SearchJobStatus:
    job = SearchJob(routes.get_walker(), req.to_observer())
    with _jobs_lock:
        _evict_finished()
        _jobs[job.job_id] = job
    job.start()
    return _job_status(job)


@router.get("/api/searches/{job_id}", response_model=SearchJobStatus)
def get_search(job_id: str) -> SearchJobStatus:
    return _job_status(_get_job(job_id))


@router.post("/api/searches/{job_id}/cancel", response_model=SearchJobStatus)
def cancel_search(job_id: str) -> SearchJobStatus:
    job = _get_job(job_id)
    job.cancel()
    return _job_status(job)
