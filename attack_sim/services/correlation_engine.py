"""
Correlation engine for linking related security events
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from ..models.event import Event, EventEnvelope
from ..utils.generator_utils import now_utc

logger = logging.getLogger(__name__)

REFERENCE_BATCH = "batch"
REFERENCE_WALL_CLOCK = "wall_clock"
REFERENCE_MODES = (REFERENCE_BATCH, REFERENCE_WALL_CLOCK)


@dataclass(frozen=True)
class ConfidenceWeights:
    temporal: float
    asset: float
    technique: float


@dataclass(frozen=True)
class CorrelationRule:
    id: str
    name: str
    techniques: FrozenSet[str]
    time_window: timedelta
    minimum_events: int
    confidence_weights: ConfidenceWeights


@dataclass
class TimelineEntry:
    timestamp: datetime
    event_id: str
    technique: str
    asset: str


@dataclass
class CorrelationResult:
    rule_id: str
    rule_name: str
    matched_events: List[EventEnvelope]
    confidence_score: float
    timeline: List[TimelineEntry] = field(default_factory=list)

    @property
    def matched_ids(self) -> FrozenSet[str]:
        return frozenset(event.id for event in self.matched_events)


DEFAULT_RULES: Tuple[CorrelationRule, ...] = (
    CorrelationRule(
        id="lateral_movement_sequence",
        name="Lateral Movement Attack Chain",
        techniques=frozenset({"T1078", "T1021.001", "T1057"}),
        time_window=timedelta(hours=24),
        minimum_events=3,
        confidence_weights=ConfidenceWeights(temporal=0.4, asset=0.3, technique=0.3),
    ),
)


class CorrelationEngine:
    """
    Matches events against a fixed rule table.

    The time window of each rule is measured back from a reference instant:
    the newest event timestamp in the batch (``batch``), or the moment the
    pass runs (``wall_clock``).
    """

    def __init__(
        self,
        rules: Optional[Iterable[CorrelationRule]] = None,
        reference: str = REFERENCE_BATCH,
        clock: Callable[[], datetime] = now_utc,
    ):
        if reference not in REFERENCE_MODES:
            raise ValueError(f"Unknown correlation reference '{reference}', expected one of {REFERENCE_MODES}")
        self._rules: Tuple[CorrelationRule, ...] = tuple(rules) if rules is not None else DEFAULT_RULES
        self.reference = reference
        self.clock = clock

    @property
    def rules(self) -> Tuple[CorrelationRule, ...]:
        return self._rules

    @staticmethod
    def envelopes(documents: Sequence[Event]) -> List[EventEnvelope]:
        """Positional envelopes (``event-0``, ``event-1``...) for a document list"""
        return [EventEnvelope.from_document(doc, f"event-{index}") for index, doc in enumerate(documents)]

    def reference_time(self, events: Sequence[EventEnvelope]) -> Optional[datetime]:
        if self.reference == REFERENCE_WALL_CLOCK:
            return self.clock()
        timestamps = [event.timestamp for event in events if event.timestamp is not None]
        return max(timestamps) if timestamps else None

    def correlate_events(self, events: Sequence[EventEnvelope]) -> List[CorrelationResult]:
        results: List[CorrelationResult] = []
        reference = self.reference_time(events)
        if reference is None:
            return results

        for rule in self._rules:
            matches = self._find_rule_matches(events, rule, reference)
            if len(matches) >= rule.minimum_events:
                results.append(
                    CorrelationResult(
                        rule_id=rule.id,
                        rule_name=rule.name,
                        matched_events=matches,
                        confidence_score=self._calculate_confidence(matches, rule),
                        timeline=self._build_event_timeline(matches),
                    )
                )
            else:
                logger.debug(f"Rule {rule.id}: {len(matches)}/{rule.minimum_events} matching events, not fired")
        return results

    @staticmethod
    def _find_rule_matches(
        events: Sequence[EventEnvelope], rule: CorrelationRule, reference: datetime
    ) -> List[EventEnvelope]:
        return [
            event
            for event in events
            if event.technique in rule.techniques
            and event.timestamp is not None
            and reference - event.timestamp <= rule.time_window
        ]

    @staticmethod
    def _calculate_confidence(matches: Sequence[EventEnvelope], rule: CorrelationRule) -> float:
        return min(len(matches) / rule.minimum_events * 0.8, 1.0)

    @staticmethod
    def _build_event_timeline(matches: Sequence[EventEnvelope]) -> List[TimelineEntry]:
        return [
            TimelineEntry(
                timestamp=event.timestamp,
                event_id=event.id,
                technique=event.technique,
                asset=event.source_asset,
            )
            for event in matches
        ]
