"""
FastAPI routes for operating the article pipeline.
"""

from datetime import date
from typing import Annotated

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status

from newsping.exceptions import FutureDateError, InvalidRangeError, SnapshotStorageError
from newsping.models.domain import RestoreResult
from newsping.pipeline import Pipeline

logger = structlog.get_logger(__name__)
router = APIRouter()

_pipeline: Pipeline | None = None


def set_pipeline(pipeline: Pipeline) -> None:
    global _pipeline
    _pipeline = pipeline


def get_pipeline() -> Pipeline:
    """Dependency returning the running pipeline."""
    if _pipeline is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Pipeline not initialized",
        )
    return _pipeline


PipelineDep = Annotated[Pipeline, Depends(get_pipeline)]


# ============================================================================
# Article Routes
# ============================================================================


@router.post("/articles/collect", status_code=status.HTTP_202_ACCEPTED)
async def trigger_collection(pipeline: PipelineDep, background_tasks: BackgroundTasks):
    """Start a collection run in the background."""
    background_tasks.add_task(pipeline.collector.collect_articles)
    return {"message": "Article collection started"}


@router.post("/articles/backup")
async def backup_articles(
    pipeline: PipelineDep,
    backup_date: Annotated[date, Query(alias="date")],
):
    """Snapshot the articles published on ``date``."""
    try:
        count = await pipeline.backup.backup_by_date(backup_date)
    except FutureDateError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except SnapshotStorageError as e:
        logger.error("Backup request failed", date=backup_date.isoformat(), error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    return {"date": backup_date.isoformat(), "count": count}


@router.get("/articles/restore", response_model=list[RestoreResult])
async def restore_articles(
    pipeline: PipelineDep,
    from_date: Annotated[date, Query(alias="from")],
    to_date: Annotated[date, Query(alias="to")],
):
    """Restore articles from the snapshots of every day in the range."""
    try:
        return await pipeline.restore.restore_range(from_date, to_date)
    except InvalidRangeError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/articles/sources")
async def list_sources(pipeline: PipelineDep) -> list[str]:
    """Distinct sources of stored articles."""
    return await pipeline.articles.list_sources()
