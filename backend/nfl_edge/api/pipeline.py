"""Pipeline control endpoints."""

from fastapi import APIRouter, Depends, HTTPException

from nfl_edge.schemas import PipelineRunResult, SourceStatus, StageResult
from nfl_edge.storage import PipelineStore, get_store
from nfl_edge.tasks.orchestrator import STAGE_ORDER, run_pipeline, run_single_stage

router = APIRouter(prefix="/pipeline")


@router.post("/run", response_model=PipelineRunResult)
async def trigger_pipeline(
    include_ingestion: bool = True,
    include_evaluation: bool = True,
    store: PipelineStore = Depends(get_store),
) -> PipelineRunResult:
    """Run the full pipeline synchronously and return every stage's outcome."""
    return await run_pipeline(
        store,
        include_ingestion=include_ingestion,
        include_evaluation=include_evaluation,
    )


@router.post("/stages/{stage}", response_model=StageResult)
async def trigger_stage(
    stage: str,
    store: PipelineStore = Depends(get_store),
) -> StageResult:
    """Run a single stage (odds, injuries, weather, features, predictions, evaluation)."""
    if stage not in STAGE_ORDER:
        raise HTTPException(
            status_code=404,
            detail=f"Unknown stage '{stage}'. Expected one of: {', '.join(STAGE_ORDER)}",
        )
    return await run_single_stage(store, stage)


@router.get("/sources", response_model=list[SourceStatus])
async def list_sources(store: PipelineStore = Depends(get_store)) -> list[SourceStatus]:
    """Ingestion source registry with failure counters."""
    return await store.list_sources()
