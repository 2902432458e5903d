"""Simulation data models"""
from pydantic import BaseModel, ConfigDict, Field, model_validator
from datetime import datetime
from typing import List, Literal, Optional

from .scenario import ScenarioCategory


class TimeRange(BaseModel):
    """Half-open time window; start must precede end"""
    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @model_validator(mode="after")
    def check_order(self):
        if self.start >= self.end:
            raise ValueError(f"TimeRange start {self.start} must be before end {self.end}")
        return self


class Campaign(BaseModel):
    """Campaign identity for one simulation run"""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Generated campaign ID")
    name: str
    type: ScenarioCategory
    threat_actor: str
    duration: TimeRange
    objectives: List[str] = Field(default_factory=list)


class SimulationStage(BaseModel):
    """A scheduled campaign stage"""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    tactic: Optional[str] = None
    techniques: List[str] = Field(default_factory=list)
    start_time: datetime
    end_time: datetime
    objectives: List[str] = Field(default_factory=list)
    correlation_keys: List[str] = Field(default_factory=list)


class SecurityArtifact(BaseModel):
    """Artifact a technique leaves behind"""
    type: Literal["process", "file", "network", "registry", "event"] = "process"
    name: str
    description: str
    detectability: Literal["low", "medium", "high"] = "medium"
    iocs: List[str] = Field(default_factory=list)


class CorrelationTimelineEntry(BaseModel):
    timestamp: datetime
    stage: str
    technique: str
    assets: List[str] = Field(default_factory=list)
    correlation_score: float = Field(..., ge=0.0, le=1.0)


class NetworkSubnet(BaseModel):
    id: str
    cidr: str
    name: str
    security_zone: Literal["dmz", "internal", "management", "critical"]
    host_count: int
    services: List[str] = Field(default_factory=list)


class CriticalAsset(BaseModel):
    id: str
    hostname: str
    ip_address: str
    subnet_id: str
    asset_type: Literal["domain_controller", "file_server", "database", "web_server", "workstation"]
    criticality: Literal["low", "medium", "high", "critical"]
    os_family: Literal["windows", "linux", "macos"]
    services: List[str] = Field(default_factory=list)


class TrustRelationship(BaseModel):
    source_id: str
    target_id: str
    relationship_type: Literal["domain_trust", "service_account", "admin_access", "network_share"]
    privilege_level: Literal["read", "write", "admin", "system"]


class SecurityControl(BaseModel):
    id: str
    type: Literal["antivirus", "edr", "firewall", "dlp", "siem", "proxy"]
    coverage: List[str] = Field(default_factory=list)
    effectiveness: float = Field(..., ge=0.0, le=1.0)
    detection_rules: List[str] = Field(default_factory=list)


class NetworkTopology(BaseModel):
    subnets: List[NetworkSubnet] = Field(default_factory=list)
    critical_assets: List[CriticalAsset] = Field(default_factory=list)
    trust_relationships: List[TrustRelationship] = Field(default_factory=list)
    security_controls: List[SecurityControl] = Field(default_factory=list)


class LateralMovementPath(BaseModel):
    id: str
    source_asset: str
    target_asset: str
    techniques: List[str] = Field(default_factory=list)
    prerequisites: List[str] = Field(default_factory=list)
    success_probability: float = Field(..., ge=0.0, le=1.0)
    detection_likelihood: float = Field(..., ge=0.0, le=1.0)


class Simulation(BaseModel):
    """A fully built campaign plan, read-only once constructed"""
    campaign: Campaign
    complexity: Literal["low", "medium", "high", "expert"] = "high"
    scenario_id: str
    stages: List[SimulationStage] = Field(default_factory=list)
    artifacts: List[SecurityArtifact] = Field(default_factory=list)
    network_topology: NetworkTopology
    lateral_movement_paths: List[LateralMovementPath] = Field(default_factory=list)
    correlation_timeline: List[CorrelationTimelineEntry] = Field(default_factory=list)
