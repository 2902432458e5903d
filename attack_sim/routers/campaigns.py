"""
Attack campaign simulation API endpoints
"""
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
import logging

from ..core.config import alert_index_for
from ..core.exceptions import DocumentSinkError, InvalidComplexity, UnknownScenarioType
from ..models.event import TimestampConfig
from ..models.responses import BaseResponse
from ..scenarios.registry import list_scenarios
from ..services.content_generator import ContentGenerator
from ..services.document_sink import ElasticsearchSink, KibanaSpaces
from ..services.simulation_engine import AttackSimulationEngine
from ..utils.generator_utils import parse_timestamp

logger = logging.getLogger(__name__)

router = APIRouter()


class SimulationRequest(BaseModel):
    """Request model for building an attack simulation"""
    scenario_type: str = Field("apt", description="apt, ransomware, insider or supply_chain")
    complexity: str = Field("high", description="low, medium, high or expert")


class TimestampWindow(BaseModel):
    start: datetime
    end: datetime


class CampaignRequest(SimulationRequest):
    """Request model for generating a full attack campaign"""
    target_count: int = Field(10, ge=0, le=10000, description="Number of synthetic target hosts")
    event_count: int = Field(50, ge=0, le=10000, description="Total events to spread across stages")
    space: str = Field("default", description="Kibana space the alerts belong to")
    use_mitre: bool = Field(True, description="Tag alerts with MITRE ATT&CK techniques")
    use_ai: bool = Field(False, description="Generate alert bodies with the configured LLM")
    index: bool = Field(True, description="Bulk-index the events into the space's alert index")
    include_events: bool = Field(False, description="Return the generated events in the response")
    timestamp_config: Optional[TimestampWindow] = Field(
        None, description="Override the per-stage timestamp windows"
    )


def get_engine(request: Request) -> AttackSimulationEngine:
    return request.app.state.engine


def get_ai_generator(request: Request) -> Optional[ContentGenerator]:
    return getattr(request.app.state, "ai_generator", None)


def get_sink(request: Request) -> ElasticsearchSink:
    return request.app.state.sink


def get_spaces(request: Request) -> KibanaSpaces:
    return request.app.state.spaces


@router.get("/scenarios", response_model=BaseResponse)
async def get_scenarios(
    category: Optional[str] = Query(None, description="Filter by scenario category"),
    complexity: Optional[str] = Query(None, description="Filter by complexity/sophistication level"),
    actor: Optional[str] = Query(None, description="APT threat actor id"),
    industry: Optional[str] = Query(None, description="Ransomware target industry"),
    motivation: Optional[str] = Query(None, description="Insider motivation"),
    risk: Optional[str] = Query(None, description="Insider activity risk level"),
    target_type: Optional[str] = Query(None, description="Supply chain target type"),
):
    """List the attack scenario catalog"""
    try:
        scenarios = list_scenarios(
            category,
            complexity=complexity,
            actor=actor,
            industry=industry,
            motivation=motivation,
            risk=risk,
            target_type=target_type,
        )
    except UnknownScenarioType as e:
        raise HTTPException(status_code=400, detail=str(e))

    return BaseResponse(
        success=True,
        data={
            "scenarios": scenarios,
            "total": len(scenarios)
        }
    )


@router.post("/simulations", response_model=BaseResponse)
async def create_simulation(
    req: SimulationRequest,
    engine: AttackSimulationEngine = Depends(get_engine),
):
    """Build an attack simulation plan without generating events"""
    try:
        simulation = engine.generate_attack_simulation(req.scenario_type, req.complexity)
    except (UnknownScenarioType, InvalidComplexity) as e:
        raise HTTPException(status_code=400, detail=str(e))

    return BaseResponse(
        success=True,
        data=simulation.model_dump(mode="json")
    )


@router.post("/campaigns", response_model=BaseResponse)
async def generate_campaign(
    req: CampaignRequest,
    engine: AttackSimulationEngine = Depends(get_engine),
    ai_generator: Optional[ContentGenerator] = Depends(get_ai_generator),
    sink: ElasticsearchSink = Depends(get_sink),
    spaces: KibanaSpaces = Depends(get_spaces),
):
    """
    Generate a correlated attack campaign.

    Builds the simulation, generates every stage's alerts and, unless
    ``index`` is false, ensures the Kibana space and alert index and
    bulk-indexes the alerts.
    """
    try:
        simulation = engine.generate_attack_simulation(req.scenario_type, req.complexity)
    except (UnknownScenarioType, InvalidComplexity) as e:
        raise HTTPException(status_code=400, detail=str(e))

    if req.use_ai and ai_generator is None:
        raise HTTPException(status_code=400, detail="AI generation requested but no LLM API key is configured")

    override = None
    if req.timestamp_config is not None:
        start = parse_timestamp(req.timestamp_config.start)
        end = parse_timestamp(req.timestamp_config.end)
        if start >= end:
            raise HTTPException(status_code=400, detail="timestamp_config start must be before end")
        override = TimestampConfig(start=start, end=end)

    try:
        result = await engine.generate_campaign_events(
            simulation,
            target_count=req.target_count,
            event_count=req.event_count,
            space=req.space,
            use_mitre=req.use_mitre,
            timestamp_config=override,
            generator=ai_generator if req.use_ai else None,
        )
    except Exception as e:
        logger.error(f"Campaign generation failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))

    indexing = None
    if req.index and result.events:
        index = alert_index_for(req.space)
        try:
            await spaces.ensure_space_async(req.space)
            await sink.ensure_index_async(index)
            indexing = await sink.bulk_index_async(index, result.events)
        except DocumentSinkError as e:
            logger.error(f"Failed to index campaign {simulation.campaign.id}: {e}")
            raise HTTPException(status_code=502, detail=str(e))
        indexing["index"] = index

    return BaseResponse(
        success=True,
        data={
            "campaign": simulation.campaign.model_dump(mode="json"),
            "complexity": simulation.complexity,
            "stages": [stage.model_dump(mode="json") for stage in simulation.stages],
            "summary": result.summary.model_dump(),
            "indexing": indexing,
            "events": result.events if req.include_events else None,
        },
        metadata={
            "requested_events": req.event_count,
            "generated_events": len(result),
            "success_score": result.summary.success_score,
        }
    )
