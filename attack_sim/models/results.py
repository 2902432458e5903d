"""Campaign generation results"""
from dataclasses import dataclass, field
from pydantic import BaseModel, Field
from typing import Iterator, List

from .event import Event


class StageFailure(BaseModel):
    technique: str
    reason: str


class StageSummary(BaseModel):
    """What one stage asked for and what came back"""
    stage_id: str
    stage_name: str
    requested: int = 0
    produced: int = 0
    failed: int = 0
    failures: List[StageFailure] = Field(default_factory=list)


class CorrelationSummary(BaseModel):
    rule_id: str
    rule_name: str
    matched_events: int
    confidence_score: float


class CampaignSummary(BaseModel):
    requested: int = 0
    generated: int = 0
    failed: int = 0
    stages: List[StageSummary] = Field(default_factory=list)
    correlations: List[CorrelationSummary] = Field(default_factory=list)
    success_score: int = Field(0, ge=0, le=100)


@dataclass
class CampaignEvents:
    """Enriched events in stage order plus the generation summary"""
    events: List[Event] = field(default_factory=list)
    summary: CampaignSummary = field(default_factory=CampaignSummary)

    def __len__(self) -> int:
        return len(self.events)

    def __iter__(self) -> Iterator[Event]:
        return iter(self.events)
