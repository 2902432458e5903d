"""
Event documents and content-generation requests.

Generated events are plain dicts keyed by field path; the engine only reads
a handful of known fields, pulled out through ``EventEnvelope``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from ..utils.generator_utils import parse_timestamp, to_iso

Event = Dict[str, Any]

FALLBACK_TECHNIQUE = "T1001"

TIMESTAMP_FIELD = "@timestamp"
ALERT_ID_FIELD = "kibana.alert.uuid"
HOST_FIELD = "host.name"
TECHNIQUE_FIELD = "threat.technique.id"
SEVERITY_FIELD = "kibana.alert.severity"
REQUESTED_TECHNIQUE_FIELD = "campaign.stage.technique"
CORRELATION_ID_FIELD = "campaign.correlation.id"


def get_field(doc: Mapping[str, Any], path: str) -> Any:
    """
    Read ``path`` from a document that may use flat dotted keys, nested
    mappings, or any mix of the two. Lists along the way resolve to their
    first element.
    """
    parts = path.split(".")
    for i in range(len(parts), 0, -1):
        key = ".".join(parts[:i])
        if key not in doc:
            continue
        value = doc[key]
        rest = parts[i:]
        if not rest:
            return value
        if isinstance(value, list):
            value = value[0] if value else None
        if isinstance(value, Mapping):
            found = get_field(value, ".".join(rest))
            if found is not None:
                return found
    return None


def _scalar(value: Any) -> Any:
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, Mapping):
        value = value.get("id")
    return value


@dataclass
class EventEnvelope:
    """Typed view over the fields correlation needs; ``raw`` keeps the rest"""

    id: str
    timestamp: Optional[datetime]
    technique: str
    source_asset: str
    severity: str
    correlation_id: Optional[str]
    raw: Event = field(repr=False, default_factory=dict)

    @classmethod
    def from_document(cls, doc: Event, event_id: str) -> "EventEnvelope":
        technique = _scalar(get_field(doc, TECHNIQUE_FIELD)) or doc.get(REQUESTED_TECHNIQUE_FIELD)
        return cls(
            id=event_id,
            timestamp=parse_timestamp(get_field(doc, TIMESTAMP_FIELD)),
            technique=technique or FALLBACK_TECHNIQUE,
            source_asset=_scalar(get_field(doc, HOST_FIELD)) or "unknown",
            severity=_scalar(get_field(doc, SEVERITY_FIELD)) or "medium",
            correlation_id=get_field(doc, CORRELATION_ID_FIELD),
            raw=doc,
        )


@dataclass
class TimestampConfig:
    """Window generated timestamps must fall in"""

    start: datetime
    end: datetime
    pattern: str = "attack_simulation"

    def to_dict(self) -> Dict[str, str]:
        return {"startDate": to_iso(self.start), "endDate": to_iso(self.end), "pattern": self.pattern}


@dataclass
class AttackChainContext:
    campaign_id: str
    stage_id: str
    stage_name: str
    stage_index: int
    total_stages: int
    threat_actor: str
    parent_events: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "campaignId": self.campaign_id,
            "stageId": self.stage_id,
            "stageName": self.stage_name,
            "stageIndex": self.stage_index,
            "totalStages": self.total_stages,
            "threatActor": self.threat_actor,
            "parentEvents": list(self.parent_events),
        }


@dataclass
class AlertRequest:
    """One call to a content generator"""

    user_name: str
    host_name: str
    space: str
    technique: str
    tactic: Optional[str]
    timestamp_config: TimestampConfig
    mitre_enabled: bool = True
    attack_chain: Optional[AttackChainContext] = None

    @property
    def alert_type(self) -> str:
        return f"{self.tactic}_{self.technique}"

    def to_args(self) -> Dict[str, Any]:
        """The request in the camelCase argument shape alert generators take"""
        return {
            "userName": self.user_name,
            "hostName": self.host_name,
            "space": self.space,
            "alertType": self.alert_type,
            "timestampConfig": self.timestamp_config.to_dict(),
            "mitreEnabled": self.mitre_enabled,
            "attackChain": self.attack_chain.to_dict() if self.attack_chain else None,
        }


@dataclass
class GenerationOutcome:
    """Result of one generation attempt: an event or the reason there is none"""

    technique: str
    event: Optional[Event] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.event is not None

    @classmethod
    def success(cls, technique: str, event: Event) -> "GenerationOutcome":
        return cls(technique=technique, event=event)

    @classmethod
    def failure(cls, technique: str, reason: str) -> "GenerationOutcome":
        return cls(technique=technique, reason=reason)
