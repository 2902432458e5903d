"""Scenario catalog types.

The four campaign families share one interface (``category``, ``actor_name``,
``stage_defs``, ``objectives``, ``campaign_days``) so the simulation engine
never has to probe which family it was handed.
"""
from __future__ import annotations

import random
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, List, Optional, Tuple


DEFAULT_OBJECTIVES = ("Establish persistence", "Collect intelligence", "Maintain access")
DEFAULT_CAMPAIGN_DAYS = (7, 60)
DEFAULT_EXECUTION_DAYS = 30
UNKNOWN_ACTOR = "Unknown Threat Actor"


class ScenarioCategory(str, Enum):
    """Campaign family"""
    APT = "apt"
    RANSOMWARE = "ransomware"
    INSIDER = "insider"
    SUPPLY_CHAIN = "supply_chain"


@dataclass(frozen=True)
class HourRange:
    min: int
    max: int


@dataclass(frozen=True)
class DayRange:
    min: int
    max: int


@dataclass(frozen=True)
class StageArtifact:
    """Artifact a catalog stage is known to leave behind"""
    type: str
    name: str
    description: str
    detectability: str
    iocs: Tuple[str, ...] = ()


@dataclass(frozen=True)
class StageDef:
    """One ordered step of a campaign.

    ``duration`` is in hours; stages without one get the engine default.
    """
    name: str
    tactic: Optional[str]
    techniques: Tuple[str, ...]
    duration: Optional[HourRange] = None
    objectives: Tuple[str, ...] = ()
    indicators: Tuple[str, ...] = ()
    next_stages: Tuple[str, ...] = ()
    artifacts: Tuple[StageArtifact, ...] = ()


class Scenario:
    """Behaviour shared by every catalog entry"""

    category: ClassVar[ScenarioCategory]
    id: str
    name: str
    description: str

    @property
    def actor_name(self) -> str:
        raise NotImplementedError

    @property
    def stage_defs(self) -> Tuple[StageDef, ...]:
        raise NotImplementedError

    @property
    def sophistication(self) -> str:
        raise NotImplementedError

    @property
    def objectives(self) -> List[str]:
        objectives = [objective for stage in self.stage_defs for objective in stage.objectives]
        return objectives or list(DEFAULT_OBJECTIVES)

    def campaign_days(self, rng: random.Random) -> int:
        """Number of days the campaign spans"""
        return rng.randint(*DEFAULT_CAMPAIGN_DAYS)

    def summary(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category.value,
            "actor": self.actor_name,
            "sophistication": self.sophistication,
            "stages": [stage.name for stage in self.stage_defs],
            "techniques": sorted({t for stage in self.stage_defs for t in stage.techniques}),
        }


# ---------------------------------------------------------------------------
# APT
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ThreatActor:
    id: str
    name: str
    aliases: Tuple[str, ...]
    country: str
    motivation: str
    sophistication: str
    preferred_techniques: Tuple[str, ...] = ()
    common_tools: Tuple[str, ...] = ()
    infrastructure: Tuple[str, ...] = ()


@dataclass(frozen=True)
class APTCampaign(Scenario):
    category: ClassVar[ScenarioCategory] = ScenarioCategory.APT

    id: str
    name: str
    description: str
    threat_actor: ThreatActor
    duration: DayRange
    complexity: str
    stages: Tuple[StageDef, ...]
    industries: Tuple[str, ...] = ()
    geolocations: Tuple[str, ...] = ()
    organization_sizes: Tuple[str, ...] = ()

    @property
    def actor_name(self) -> str:
        return self.threat_actor.name

    @property
    def stage_defs(self) -> Tuple[StageDef, ...]:
        return self.stages

    @property
    def sophistication(self) -> str:
        return self.complexity

    def campaign_days(self, rng: random.Random) -> int:
        return rng.randint(self.duration.min, self.duration.max)


# ---------------------------------------------------------------------------
# Ransomware
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RansomwareGroup:
    id: str
    name: str
    aliases: Tuple[str, ...]
    currency: str
    typical_amount: Tuple[int, int]
    encryption_algorithm: str
    file_extensions: Tuple[str, ...]
    exclusions: Tuple[str, ...]
    double_extortion: bool
    supply_chain: bool
    lateral_movement: Tuple[str, ...]


@dataclass(frozen=True)
class RansomwareChain(Scenario):
    category: ClassVar[ScenarioCategory] = ScenarioCategory.RANSOMWARE

    id: str
    name: str
    description: str
    group: RansomwareGroup
    sophistication_level: str
    estimated_timeline: DayRange
    stages: Tuple[StageDef, ...]
    industries: Tuple[str, ...] = ()
    organization_sizes: Tuple[str, ...] = ()
    geographic_focus: Tuple[str, ...] = ()

    @property
    def actor_name(self) -> str:
        return self.group.name

    @property
    def stage_defs(self) -> Tuple[StageDef, ...]:
        return self.stages

    @property
    def sophistication(self) -> str:
        return self.sophistication_level

    def campaign_days(self, rng: random.Random) -> int:
        # The timeline is an estimate window, not an execution length
        return DEFAULT_EXECUTION_DAYS


# ---------------------------------------------------------------------------
# Insider
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class InsiderProfile:
    id: str
    name: str
    role: str
    access_level: str
    motivation: str
    sophistication: str
    behavioral_indicators: Tuple[str, ...] = ()


@dataclass(frozen=True)
class InsiderActivity:
    name: str
    category: str
    risk_level: str
    techniques: Tuple[str, ...]
    indicators: Tuple[str, ...]
    frequency: str
    duration_hours: int

    def as_stage_def(self) -> StageDef:
        # Insider activities carry no ATT&CK tactic; the category stands in
        return StageDef(
            name=self.name,
            tactic=self.category,
            techniques=self.techniques,
            duration=HourRange(min=self.duration_hours, max=self.duration_hours),
            indicators=self.indicators,
        )


@dataclass(frozen=True)
class InsiderThreatScenario(Scenario):
    category: ClassVar[ScenarioCategory] = ScenarioCategory.INSIDER

    id: str
    name: str
    description: str
    insider: InsiderProfile
    buildup_days: int
    active_days: int
    detection_window_days: int
    activities: Tuple[InsiderActivity, ...]
    target_data: Tuple[str, ...] = ()
    data_exposure: str = "medium"
    financial_impact: int = 0
    reputation_damage: str = "medium"

    @property
    def actor_name(self) -> str:
        return self.insider.name

    @property
    def stage_defs(self) -> Tuple[StageDef, ...]:
        return tuple(activity.as_stage_def() for activity in self.activities)

    @property
    def sophistication(self) -> str:
        return self.insider.sophistication

    @property
    def objectives(self) -> List[str]:
        objectives = [indicator for activity in self.activities for indicator in activity.indicators]
        return objectives or list(DEFAULT_OBJECTIVES)


# ---------------------------------------------------------------------------
# Supply chain
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SupplyChainTarget:
    id: str
    name: str
    type: str
    criticality: str
    customer_reach: int
    attack_surface: Tuple[str, ...] = ()


@dataclass(frozen=True)
class SupplyChainStage:
    name: str
    tactic: str
    techniques: Tuple[str, ...]
    duration_days: DayRange
    objectives: Tuple[str, ...] = ()
    indicators: Tuple[str, ...] = ()
    success_criteria: Tuple[str, ...] = ()

    def as_stage_def(self) -> StageDef:
        # Day-granular phases have no hour range; the engine default applies
        return StageDef(
            name=self.name,
            tactic=self.tactic,
            techniques=self.techniques,
            objectives=self.objectives,
            indicators=self.indicators,
        )


@dataclass(frozen=True)
class SupplyChainAttack(Scenario):
    category: ClassVar[ScenarioCategory] = ScenarioCategory.SUPPLY_CHAIN

    id: str
    name: str
    description: str
    target: SupplyChainTarget
    attack_vector: str
    sophistication_level: str
    stages: Tuple[SupplyChainStage, ...]
    planning_days: int
    execution_days: int
    discovery_days: int
    direct_victims: int = 0
    indirect_victims: int = 0
    geographic_reach: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def actor_name(self) -> str:
        return UNKNOWN_ACTOR

    @property
    def stage_defs(self) -> Tuple[StageDef, ...]:
        return tuple(stage.as_stage_def() for stage in self.stages)

    @property
    def sophistication(self) -> str:
        return self.sophistication_level

    def campaign_days(self, rng: random.Random) -> int:
        return self.execution_days or DEFAULT_EXECUTION_DAYS
