"""
Attack Simulation Engine
========================

Builds multi-stage attack campaigns from the scenario catalog and generates
their correlated alert events.

Two entry points:

- ``generate_attack_simulation`` picks a scenario and lays its stages out on
  a timeline: campaign window, sequential non-overlapping stage windows,
  per-technique artifacts and a stage-level correlation timeline. Pure
  construction, no I/O.
- ``generate_campaign_events`` walks the stages in order and asks the
  content generator for each stage's events in bounded concurrent batches,
  stamps campaign/attack-chain metadata on every event, runs cross-stage
  correlation and scores the campaign.
"""

import asyncio
import logging
import math
import random
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, List, Optional, Sequence

from ..core.config import Settings, settings as default_settings
from ..core.exceptions import InvalidComplexity
from ..models.event import (
    ALERT_ID_FIELD,
    FALLBACK_TECHNIQUE,
    REQUESTED_TECHNIQUE_FIELD,
    AlertRequest,
    AttackChainContext,
    Event,
    GenerationOutcome,
    TimestampConfig,
)
from ..models.results import (
    CampaignEvents,
    CampaignSummary,
    CorrelationSummary,
    StageFailure,
    StageSummary,
)
from ..models.scenario import Scenario
from ..models.simulation import (
    Campaign,
    CorrelationTimelineEntry,
    SecurityArtifact,
    Simulation,
    SimulationStage,
    TimeRange,
)
from ..scenarios.registry import select_scenario
from ..utils.generator_utils import generate_uuid, now_utc, to_iso
from .content_generator import ContentGenerator, TemplateAlertGenerator
from .correlation_engine import CorrelationEngine, CorrelationResult
from .topology import (
    build_lateral_movement_paths,
    build_network_topology,
    contextual_username,
    generate_target_hosts,
)

logger = logging.getLogger(__name__)

COMPLEXITY_LEVELS = ("low", "medium", "high", "expert")

CAMPAIGN_START_DAYS_AGO = (30, 90)
DEFAULT_STAGE_HOURS = (2, 48)
STAGE_GAP_HOURS = (1, 24)
TIMELINE_SCORE_RANGE = (0.6, 1.0)
EVENT_CORRELATION_SCORE_RANGE = (0.7, 0.95)
PARENT_EVENT_LIMIT = 3
SUCCESS_STAGE_TARGET = 5

# Field namespaces only the engine writes; generator documents never supply them
ENGINE_OWNED_NAMESPACES = ("campaign", "attack_chain", "correlation")


def progression_phase(stage_index: int, total_stages: int) -> str:
    """Kill-chain phase label for a 0-based stage index"""
    progress = (stage_index + 1) / total_stages
    if progress <= 1 / 3:
        return "initial"
    if progress <= 2 / 3:
        return "escalation"
    return "objectives"


def _is_confidence(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0


def calculate_campaign_success(events: Sequence[Event]) -> int:
    """
    Campaign success score in [0, 100].

    40 points for stage coverage (saturating at five stages), 30 for any
    correlation hit, 30 scaled by the average correlation confidence.
    """
    stages_covered = len({e.get("campaign.stage.name") for e in events if e.get("campaign.stage.name")})
    has_correlation = any(e.get("correlation.rule_id") for e in events)
    confidences = [e["correlation.confidence"] for e in events if _is_confidence(e.get("correlation.confidence"))]
    avg_confidence = sum(confidences) / len(confidences) if confidences else 0.0

    score = (
        min(1.0, stages_covered / SUCCESS_STAGE_TARGET) * 40
        + (30 if has_correlation else 0)
        + avg_confidence * 30
    )
    # Round half up
    return max(0, min(100, int(math.floor(score + 0.5))))


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def strip_engine_fields(event: Event) -> Event:
    """Copy of a generated document without keys in the engine-owned namespaces"""
    return {
        key: value
        for key, value in event.items()
        if key.split(".", 1)[0] not in ENGINE_OWNED_NAMESPACES
    }


class AttackSimulationEngine:
    """Orchestrates simulation construction and campaign event generation"""

    def __init__(
        self,
        generator: Optional[ContentGenerator] = None,
        correlation_engine: Optional[CorrelationEngine] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = now_utc,
        settings: Optional[Settings] = None,
    ):
        settings = settings or default_settings
        self.rng = rng or random.Random()
        self.clock = clock
        self.generator = generator or TemplateAlertGenerator(self.rng)
        self.correlation_engine = correlation_engine or CorrelationEngine(
            reference=settings.correlation_reference, clock=clock
        )
        self.batch_size = max(1, settings.generator_batch_size)
        self.batch_pause = settings.generator_batch_pause_seconds
        self.call_timeout = settings.generator_call_timeout_seconds
        self.batch_deadline = settings.generator_batch_deadline_seconds
        self.network_topology = build_network_topology()

    # ------------------------------------------------------------------
    # Simulation construction
    # ------------------------------------------------------------------

    def generate_attack_simulation(self, scenario_type: str = "apt", complexity: str = "high") -> Simulation:
        """
        Build a complete attack simulation for a randomly selected scenario
        of ``scenario_type``.

        Raises:
            UnknownScenarioType: scenario_type is not a catalog category
            InvalidComplexity: complexity is not one of COMPLEXITY_LEVELS
        """
        if complexity not in COMPLEXITY_LEVELS:
            raise InvalidComplexity(complexity)
        scenario = select_scenario(scenario_type, self.rng)

        time_range = self._generate_time_range(scenario)
        campaign = Campaign(
            id=generate_uuid(self.rng),
            name=scenario.name,
            type=scenario.category,
            threat_actor=scenario.actor_name,
            duration=time_range,
            objectives=scenario.objectives,
        )
        stages = self._generate_correlated_stages(scenario, time_range)

        simulation = Simulation(
            campaign=campaign,
            complexity=complexity,
            scenario_id=scenario.id,
            stages=stages,
            artifacts=self._generate_stage_artifacts(stages),
            network_topology=self.network_topology,
            lateral_movement_paths=build_lateral_movement_paths(),
            correlation_timeline=self._build_correlation_timeline(stages),
        )
        logger.info(
            f"Built {scenario.category.value} simulation '{scenario.name}' ({scenario.id}): "
            f"{len(stages)} stages, {to_iso(time_range.start)} -> {to_iso(time_range.end)}"
        )
        return simulation

    def _generate_time_range(self, scenario: Scenario) -> TimeRange:
        start = self.clock() - timedelta(days=self.rng.randint(*CAMPAIGN_START_DAYS_AGO))
        duration_days = scenario.campaign_days(self.rng)
        return TimeRange(start=start, end=start + timedelta(days=duration_days))

    def _generate_correlated_stages(self, scenario: Scenario, time_range: TimeRange) -> List[SimulationStage]:
        # Each stage starts after the previous one ends, so this is a serial fold
        stages: List[SimulationStage] = []
        current = time_range.start
        for index, stage_def in enumerate(scenario.stage_defs):
            if stage_def.duration is not None:
                hours = self.rng.randint(stage_def.duration.min, stage_def.duration.max)
            else:
                hours = self.rng.randint(*DEFAULT_STAGE_HOURS)
            end = current + timedelta(hours=hours)

            stages.append(
                SimulationStage(
                    id=generate_uuid(self.rng),
                    name=stage_def.name,
                    tactic=stage_def.tactic,
                    techniques=list(stage_def.techniques),
                    start_time=current,
                    end_time=end,
                    objectives=list(stage_def.objectives),
                    correlation_keys=[k for k in (f"stage_{index}", stage_def.name, stage_def.tactic) if k],
                )
            )
            current = end + timedelta(hours=self.rng.randint(*STAGE_GAP_HOURS))
        return stages

    @staticmethod
    def _generate_stage_artifacts(stages: Iterable[SimulationStage]) -> List[SecurityArtifact]:
        return [
            SecurityArtifact(
                type="process",
                name=f"{technique}_artifact",
                description=f"Artifact generated by {technique} in {stage.name}",
                detectability="medium",
                iocs=[f"{technique.lower()}_indicator"],
            )
            for stage in stages
            for technique in stage.techniques
        ]

    def _build_correlation_timeline(self, stages: Iterable[SimulationStage]) -> List[CorrelationTimelineEntry]:
        return [
            CorrelationTimelineEntry(
                timestamp=stage.start_time,
                stage=stage.name,
                technique=stage.techniques[0] if stage.techniques else "unknown",
                assets=["multiple"],
                correlation_score=self.rng.uniform(*TIMELINE_SCORE_RANGE),
            )
            for stage in stages
        ]

    # ------------------------------------------------------------------
    # Campaign event generation
    # ------------------------------------------------------------------

    async def generate_campaign_events(
        self,
        simulation: Simulation,
        target_count: int = 10,
        event_count: int = 50,
        space: str = "default",
        use_mitre: bool = True,
        timestamp_config: Optional[TimestampConfig] = None,
        generator: Optional[ContentGenerator] = None,
    ) -> CampaignEvents:
        """
        Generate the correlated event set for ``simulation``.

        Stages run strictly in order; within a stage generator calls run in
        concurrent batches. Failed or timed-out calls are dropped and
        reported in the summary, never raised. ``generator`` overrides the
        engine's content generator for this run.
        """
        generator = generator or self.generator
        target_hosts = generate_target_hosts(target_count, self.rng)
        if not target_hosts:
            target_hosts = [asset.hostname for asset in simulation.network_topology.critical_assets]

        stages = simulation.stages
        events_per_stage = math.ceil(event_count / len(stages)) if stages and event_count > 0 else 0

        logger.info(
            f"Generating attack campaign '{simulation.campaign.name}': {event_count} events, "
            f"{len(target_hosts)} target hosts, {len(stages)} stages, {events_per_stage} events per stage"
        )

        all_events: List[Event] = []
        stage_summaries: List[StageSummary] = []

        for stage_index, stage in enumerate(stages):
            parent_events = [e[ALERT_ID_FIELD] for e in all_events if e.get(ALERT_ID_FIELD)]
            logger.info(
                f"Stage {stage_index + 1}/{len(stages)}: {stage.name} "
                f"({to_iso(stage.start_time)} -> {to_iso(stage.end_time)}), "
                f"techniques: {', '.join(stage.techniques) or FALLBACK_TECHNIQUE}"
            )

            requests = self._plan_stage_requests(
                simulation,
                stage,
                stage_index,
                target_hosts,
                events_per_stage,
                space,
                use_mitre,
                timestamp_config,
                parent_events[-PARENT_EVENT_LIMIT:],
            )
            outcomes = await self._run_batches(requests, generator)

            successes = [outcome for outcome in outcomes if outcome.ok]
            failures = [
                StageFailure(technique=outcome.technique, reason=outcome.reason or "unknown")
                for outcome in outcomes
                if not outcome.ok
            ]
            all_events.extend(
                self._add_correlation_metadata(successes, simulation, stage, stage_index, len(all_events))
            )
            stage_summaries.append(
                StageSummary(
                    stage_id=stage.id,
                    stage_name=stage.name,
                    requested=len(requests),
                    produced=len(successes),
                    failed=len(failures),
                    failures=failures,
                )
            )
            logger.info(f"Stage {stage.name}: {len(successes)} events generated, {len(failures)} failed")

        results = self.correlation_engine.correlate_events(CorrelationEngine.envelopes(all_events))
        final_events = self._apply_correlation(all_events, results)
        success_score = calculate_campaign_success(final_events)

        for result in results:
            logger.info(
                f"Correlation {result.rule_id}: {len(result.matched_events)} events, "
                f"confidence {result.confidence_score:.2f}"
            )
        logger.info(f"Campaign complete: {len(final_events)} correlated events, success score {success_score}%")

        summary = CampaignSummary(
            requested=sum(s.requested for s in stage_summaries),
            generated=len(final_events),
            failed=sum(s.failed for s in stage_summaries),
            stages=stage_summaries,
            correlations=[
                CorrelationSummary(
                    rule_id=result.rule_id,
                    rule_name=result.rule_name,
                    matched_events=len(result.matched_events),
                    confidence_score=result.confidence_score,
                )
                for result in results
            ],
            success_score=success_score,
        )
        return CampaignEvents(events=final_events, summary=summary)

    def _plan_stage_requests(
        self,
        simulation: Simulation,
        stage: SimulationStage,
        stage_index: int,
        target_hosts: Sequence[str],
        budget: int,
        space: str,
        use_mitre: bool,
        timestamp_config: Optional[TimestampConfig],
        parent_events: List[str],
    ) -> List[AlertRequest]:
        """Spread the stage budget over its techniques, ceil(budget/n) each until the budget runs out"""
        if budget <= 0:
            return []
        techniques = stage.techniques or [FALLBACK_TECHNIQUE]
        per_technique = math.ceil(budget / len(techniques))
        window = self._request_window(stage, timestamp_config)
        chain = AttackChainContext(
            campaign_id=simulation.campaign.id,
            stage_id=stage.id,
            stage_name=stage.name,
            stage_index=stage_index + 1,
            total_stages=len(simulation.stages),
            threat_actor=simulation.campaign.threat_actor,
            parent_events=parent_events,
        )

        requests: List[AlertRequest] = []
        for technique in techniques:
            for _ in range(min(per_technique, budget - len(requests))):
                requests.append(
                    AlertRequest(
                        user_name=contextual_username(stage.name, self.rng),
                        host_name=self.rng.choice(target_hosts),
                        space=space,
                        technique=technique,
                        tactic=stage.tactic,
                        timestamp_config=window,
                        mitre_enabled=use_mitre,
                        attack_chain=chain,
                    )
                )
            if len(requests) >= budget:
                break
        return requests

    @staticmethod
    def _request_window(stage: SimulationStage, override: Optional[TimestampConfig]) -> TimestampConfig:
        if override is not None:
            return TimestampConfig(start=_as_utc(override.start), end=_as_utc(override.end), pattern=override.pattern)
        return TimestampConfig(start=stage.start_time, end=stage.end_time)

    async def _run_batches(
        self, requests: Sequence[AlertRequest], generator: ContentGenerator
    ) -> List[GenerationOutcome]:
        outcomes: List[GenerationOutcome] = []
        batches = [requests[i:i + self.batch_size] for i in range(0, len(requests), self.batch_size)]
        for number, batch in enumerate(batches):
            outcomes.extend(await self._run_batch(batch, generator))
            if number < len(batches) - 1 and self.batch_pause > 0:
                await asyncio.sleep(self.batch_pause)
        return outcomes

    async def _run_batch(
        self, batch: Sequence[AlertRequest], generator: ContentGenerator
    ) -> List[GenerationOutcome]:
        """Run one batch concurrently; calls still pending at the batch deadline become timeouts"""
        tasks = [asyncio.ensure_future(self._generate_one(request, generator)) for request in batch]
        done, pending = await asyncio.wait(tasks, timeout=self.batch_deadline)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        outcomes = []
        for request, task in zip(batch, tasks):
            if task in done:
                outcomes.append(task.result())
            else:
                logger.warning(f"Alert generation for {request.technique} missed the batch deadline")
                outcomes.append(GenerationOutcome.failure(request.technique, "timeout"))
        return outcomes

    async def _generate_one(self, request: AlertRequest, generator: ContentGenerator) -> GenerationOutcome:
        try:
            event = await asyncio.wait_for(generator.generate(request), timeout=self.call_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Alert generation for {request.technique} timed out after {self.call_timeout}s")
            return GenerationOutcome.failure(request.technique, "timeout")
        except Exception as e:
            logger.warning(f"Alert generation failed for {request.technique}: {e}")
            return GenerationOutcome.failure(request.technique, str(e) or type(e).__name__)

        if not isinstance(event, Mapping):
            logger.warning(f"Alert generation for {request.technique} returned {type(event).__name__}")
            return GenerationOutcome.failure(request.technique, f"generator returned {type(event).__name__}")
        return GenerationOutcome.success(request.technique, dict(event))

    def _add_correlation_metadata(
        self,
        successes: Sequence[GenerationOutcome],
        simulation: Simulation,
        stage: SimulationStage,
        stage_index: int,
        previous_events: int,
    ) -> List[Event]:
        campaign = simulation.campaign
        phase = progression_phase(stage_index, len(simulation.stages))
        correlated: List[Event] = []

        for event_index, outcome in enumerate(successes):
            event = {
                **strip_engine_fields(outcome.event),
                "campaign.id": campaign.id,
                "campaign.name": campaign.name,
                "campaign.type": campaign.type.value,
                "campaign.threat_actor": campaign.threat_actor,
                "campaign.stage.id": stage.id,
                "campaign.stage.name": stage.name,
                "campaign.stage.index": stage_index + 1,
                "campaign.stage.tactic": stage.tactic,
                REQUESTED_TECHNIQUE_FIELD: outcome.technique,
                "campaign.event.sequence": previous_events + event_index + 1,
                "campaign.correlation.id": f"{campaign.id}-{stage.id}-{event_index}",
                "campaign.correlation.score": self.rng.uniform(*EVENT_CORRELATION_SCORE_RANGE),
                "campaign.progression.phase": phase,
            }
            if len(stage.techniques) > 1:
                event["attack_chain.id"] = f"chain-{stage.id}"
                event["attack_chain.sequence"] = event_index + 1
                event["attack_chain.total_events"] = len(successes)
            correlated.append(event)
        return correlated

    @staticmethod
    def _apply_correlation(events: Sequence[Event], results: Sequence[CorrelationResult]) -> List[Event]:
        """Stamp each event with the first correlation result that matched it"""
        matched = [(result, result.matched_ids) for result in results]
        enriched: List[Event] = []
        for index, event in enumerate(events):
            event_id = f"event-{index}"
            result = next((r for r, ids in matched if event_id in ids), None)
            if result is None:
                enriched.append(event)
                continue
            enriched.append(
                {
                    **event,
                    "correlation.rule_id": result.rule_id,
                    "correlation.rule_name": result.rule_name,
                    "correlation.confidence": result.confidence_score,
                    "correlation.matched_techniques": [e.technique for e in result.matched_events],
                }
            )
        return enriched
