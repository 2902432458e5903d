"""
Alert content generators
========================

A content generator turns one ``AlertRequest`` into one Kibana security
alert document (flat dotted keys). Two implementations:

- ``TemplateAlertGenerator`` builds the document locally from the request.
- ``LLMAlertGenerator`` asks an OpenAI-compatible chat-completions endpoint
  for the alert body and overlays the fields the campaign depends on.
"""

import json
import logging
import random
from datetime import datetime
from typing import Any, Dict, Optional, Protocol

import httpx

from ..core.config import Settings
from ..core.exceptions import ContentGenerationError
from ..models.event import AlertRequest, Event
from ..utils.generator_utils import (
    generate_private_ip,
    generate_sha256,
    generate_uuid,
    parse_timestamp,
    random_timestamp_between,
    to_iso,
)

logger = logging.getLogger(__name__)

KIBANA_VERSION = "8.7.0"

SEVERITY_RISK_SCORES = (
    ("low", 21),
    ("medium", 47),
    ("high", 73),
    ("critical", 99),
)

PROCESS_NAMES = ("powershell.exe", "cmd.exe", "rundll32.exe", "wmic.exe", "svchost.exe", "bash", "python3")


class ContentGenerator(Protocol):
    async def generate(self, request: AlertRequest) -> Event:
        ...


class TemplateAlertGenerator:
    """Offline generator; every random draw comes from ``rng``"""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    async def generate(self, request: AlertRequest) -> Event:
        return self.build_alert(request)

    def build_alert(self, request: AlertRequest) -> Event:
        rng = self.rng
        window = request.timestamp_config
        timestamp = to_iso(random_timestamp_between(window.start, window.end, rng))
        severity, risk_score = rng.choice(SEVERITY_RISK_SCORES)

        alert: Event = {
            "@timestamp": timestamp,
            "host.name": request.host_name,
            "user.name": request.user_name,
            "kibana.alert.uuid": generate_uuid(rng),
            "kibana.alert.start": timestamp,
            "kibana.alert.last_detected": timestamp,
            "kibana.version": KIBANA_VERSION,
            "kibana.space_ids": [request.space],
            "kibana.alert.status": "active",
            "kibana.alert.workflow_status": "open",
            "kibana.alert.depth": 1,
            "kibana.alert.severity": severity,
            "kibana.alert.risk_score": risk_score,
            "kibana.alert.rule.name": f"Attack Simulation - {request.alert_type}",
            "kibana.alert.rule.uuid": generate_uuid(rng),
            "event.kind": "signal",
            "event.category": ["intrusion_detection"],
            "source.ip": generate_private_ip(rng),
            "destination.ip": generate_private_ip(rng),
            "process.name": rng.choice(PROCESS_NAMES),
            "process.hash.sha256": generate_sha256(rng),
        }

        if request.mitre_enabled:
            alert["threat.framework"] = "MITRE ATT&CK"
            alert["threat.technique.id"] = [request.technique]
            if request.tactic:
                alert["threat.tactic.id"] = [request.tactic]

        alert.update(attack_chain_fields(request))
        return alert


def attack_chain_fields(request: AlertRequest) -> Dict[str, Any]:
    chain = request.attack_chain
    if chain is None:
        return {}
    return {
        "kibana.alert.attack_chain.campaign_id": chain.campaign_id,
        "kibana.alert.attack_chain.stage_id": chain.stage_id,
        "kibana.alert.attack_chain.stage_name": chain.stage_name,
        "kibana.alert.attack_chain.stage_index": chain.stage_index,
        "kibana.alert.attack_chain.total_stages": chain.total_stages,
        "kibana.alert.attack_chain.threat_actor": chain.threat_actor,
        "kibana.alert.attack_chain.parent_events": list(chain.parent_events),
    }


def extract_json_object(content: str) -> Dict[str, Any]:
    """Pull the first JSON object out of a model reply"""
    try:
        parsed = json.loads(content)
    except json.JSONDecodeError:
        start, end = content.find("{"), content.rfind("}")
        if start == -1 or end <= start:
            raise ContentGenerationError("Model reply contains no JSON object")
        try:
            parsed = json.loads(content[start:end + 1])
        except json.JSONDecodeError as e:
            raise ContentGenerationError(f"Model reply is not valid JSON: {e}") from e
    if not isinstance(parsed, dict):
        raise ContentGenerationError("Model reply is not a JSON object")
    return parsed


class LLMAlertGenerator:
    """Generates alerts through an OpenAI-compatible chat-completions API"""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-4o",
        timeout: float = 30.0,
        rng: Optional[random.Random] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.transport = transport
        self.template = TemplateAlertGenerator(rng)

    def _prompt(self, request: AlertRequest) -> Dict[str, str]:
        window = request.timestamp_config
        system = (
            "Security alert generator. Reply with one JSON object using flat dotted ECS/Kibana keys:\n"
            f'- host.name: "{request.host_name}"\n'
            f'- user.name: "{request.user_name}"\n'
            f'- kibana.space_ids: ["{request.space}"]\n'
            "- kibana.alert.uuid: UUID\n"
            f"- @timestamp: ISO timestamp between {to_iso(window.start)} and {to_iso(window.end)}\n"
            '- event.kind: "signal"\n'
            "- kibana.alert.severity and kibana.alert.risk_score\n"
            f"This is a {request.alert_type} type alert."
        )
        if request.mitre_enabled:
            system += f" Tag it with MITRE ATT&CK technique {request.technique} in threat.technique.id."
        if request.attack_chain is not None:
            chain = request.attack_chain
            system += (
                f" It belongs to stage {chain.stage_index}/{chain.total_stages} ({chain.stage_name})"
                f" of a campaign by {chain.threat_actor}."
            )
        user = f'Generate a realistic security alert for host "{request.host_name}" and user "{request.user_name}".'
        return {"system": system, "user": user}

    async def generate(self, request: AlertRequest) -> Event:
        prompt = self._prompt(request)
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": prompt["system"]},
                {"role": "user", "content": prompt["user"]},
            ],
            "response_format": {"type": "json_object"},
            "temperature": 0.7,
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(f"{self.base_url}/chat/completions", headers=headers, json=payload)
        except httpx.HTTPError as e:
            raise ContentGenerationError(f"Chat completion request failed: {e}") from e

        if response.status_code != 200:
            raise ContentGenerationError(
                f"Chat completion returned HTTP {response.status_code}: {response.text[:200]}"
            )

        try:
            content = response.json()["choices"][0]["message"]["content"] or ""
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ContentGenerationError(f"Unexpected chat completion response: {e}") from e

        return self._merge(extract_json_object(content), request)

    def _merge(self, generated: Dict[str, Any], request: AlertRequest) -> Event:
        """Overlay the generated body on a template alert, keeping the required fields ours"""
        base = self.template.build_alert(request)
        alert: Event = {**base, **generated}

        alert["host.name"] = request.host_name
        alert["user.name"] = request.user_name
        alert["kibana.space_ids"] = [request.space]
        if not isinstance(generated.get("kibana.alert.uuid"), str) or not generated["kibana.alert.uuid"]:
            alert["kibana.alert.uuid"] = base["kibana.alert.uuid"]
        if not _within(generated.get("@timestamp"), request.timestamp_config.start, request.timestamp_config.end):
            alert["@timestamp"] = base["@timestamp"]
        if request.mitre_enabled:
            alert["threat.technique.id"] = base["threat.technique.id"]
        alert.update(attack_chain_fields(request))
        return alert


def _within(value: Any, start: datetime, end: datetime) -> bool:
    parsed = parse_timestamp(value)
    return parsed is not None and start <= parsed <= end


def build_content_generator(
    settings: Settings, rng: Optional[random.Random] = None, use_ai: bool = False
) -> ContentGenerator:
    """LLM generator when asked for and configured, template generator otherwise"""
    if use_ai:
        if settings.openai_api_key:
            logger.info(f"Using LLM alert generator ({settings.openai_model})")
            return LLMAlertGenerator(
                api_key=settings.openai_api_key,
                base_url=settings.openai_base_url,
                model=settings.openai_model,
                timeout=settings.generator_call_timeout_seconds,
                rng=rng,
            )
        logger.warning("AI generation requested but OPENAI_API_KEY is not set, using template generator")
    return TemplateAlertGenerator(rng)
