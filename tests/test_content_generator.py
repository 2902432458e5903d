"""
Tests for alert content generators
"""
import asyncio
import json
import random
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from attack_sim.core.config import Settings
from attack_sim.core.exceptions import ContentGenerationError
from attack_sim.models.event import AlertRequest, AttackChainContext, TimestampConfig
from attack_sim.services.content_generator import (
    LLMAlertGenerator,
    TemplateAlertGenerator,
    build_content_generator,
    extract_json_object,
)
from attack_sim.utils.generator_utils import parse_timestamp

START = datetime(2026, 1, 5, 8, 0, 0, tzinfo=timezone.utc)
END = START + timedelta(hours=4)


@pytest.fixture
def alert_request():
    return AlertRequest(
        user_name="admin_42",
        host_name="srv-007",
        space="soc-lab",
        technique="T1021.001",
        tactic="TA0008",
        timestamp_config=TimestampConfig(start=START, end=END),
        attack_chain=AttackChainContext(
            campaign_id="camp-1",
            stage_id="stage-5",
            stage_name="lateral_movement",
            stage_index=5,
            total_stages=8,
            threat_actor="Conti",
            parent_events=["p1", "p2", "p3"],
        ),
    )


def chat_reply(content, status=200):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, json={"choices": [{"message": {"content": content}}]})
    return httpx.MockTransport(handler)


class TestTemplateAlertGenerator:
    """Test the offline template generator"""

    def test_required_fields(self, alert_request):
        alert = asyncio.run(TemplateAlertGenerator(random.Random(1)).generate(alert_request))
        assert alert["host.name"] == "srv-007"
        assert alert["user.name"] == "admin_42"
        assert alert["kibana.space_ids"] == ["soc-lab"]
        assert alert["event.kind"] == "signal"
        assert alert["kibana.alert.rule.name"] == "Attack Simulation - TA0008_T1021.001"
        assert alert["kibana.alert.uuid"]
        assert START <= parse_timestamp(alert["@timestamp"]) <= END

    def test_severity_matches_risk_score(self, alert_request):
        generator = TemplateAlertGenerator(random.Random(2))
        expected = {"low": 21, "medium": 47, "high": 73, "critical": 99}
        for _ in range(10):
            alert = generator.build_alert(alert_request)
            assert expected[alert["kibana.alert.severity"]] == alert["kibana.alert.risk_score"]

    def test_mitre_fields(self, alert_request):
        alert = TemplateAlertGenerator(random.Random(3)).build_alert(alert_request)
        assert alert["threat.framework"] == "MITRE ATT&CK"
        assert alert["threat.technique.id"] == ["T1021.001"]
        assert alert["threat.tactic.id"] == ["TA0008"]

    def test_mitre_disabled(self, alert_request):
        alert_request.mitre_enabled = False
        alert = TemplateAlertGenerator(random.Random(3)).build_alert(alert_request)
        assert "threat.technique.id" not in alert
        assert "threat.framework" not in alert

    def test_attack_chain_fields(self, alert_request):
        alert = TemplateAlertGenerator(random.Random(4)).build_alert(alert_request)
        assert alert["kibana.alert.attack_chain.campaign_id"] == "camp-1"
        assert alert["kibana.alert.attack_chain.stage_index"] == 5
        assert alert["kibana.alert.attack_chain.total_stages"] == 8
        assert alert["kibana.alert.attack_chain.parent_events"] == ["p1", "p2", "p3"]

    def test_reproducible(self, alert_request):
        a = TemplateAlertGenerator(random.Random(5)).build_alert(alert_request)
        b = TemplateAlertGenerator(random.Random(5)).build_alert(alert_request)
        assert a == b


class TestExtractJsonObject:
    """Test JSON extraction from model replies"""

    def test_plain_json(self):
        assert extract_json_object('{"a": 1}') == {"a": 1}

    def test_fenced_json(self):
        assert extract_json_object('Here you go:\n```json\n{"a": 2}\n```') == {"a": 2}

    def test_no_object(self):
        with pytest.raises(ContentGenerationError):
            extract_json_object("no alert today")

    def test_not_an_object(self):
        with pytest.raises(ContentGenerationError):
            extract_json_object("[1, 2, 3]")


class TestLLMAlertGenerator:
    """Test the chat-completions generator against a mock transport"""

    def test_merges_reply_over_template(self, alert_request):
        reply = json.dumps({
            "@timestamp": "2026-01-05T09:30:00.000Z",
            "host.name": "someone-else",
            "kibana.alert.uuid": "11111111-2222-4333-8444-555555555555",
            "kibana.alert.reason": "RDP session from unusual source",
            "threat.technique.id": ["T9999"],
        })
        generator = LLMAlertGenerator(api_key="sk-test", rng=random.Random(6), transport=chat_reply(reply))

        alert = asyncio.run(generator.generate(alert_request))

        assert alert["kibana.alert.reason"] == "RDP session from unusual source"
        assert alert["@timestamp"] == "2026-01-05T09:30:00.000Z"
        assert alert["kibana.alert.uuid"] == "11111111-2222-4333-8444-555555555555"
        assert alert["host.name"] == "srv-007"
        assert alert["user.name"] == "admin_42"
        assert alert["kibana.space_ids"] == ["soc-lab"]
        assert alert["threat.technique.id"] == ["T1021.001"]
        assert alert["kibana.alert.attack_chain.stage_name"] == "lateral_movement"

    def test_out_of_window_timestamp_replaced(self, alert_request):
        reply = json.dumps({"@timestamp": "2020-01-01T00:00:00.000Z"})
        generator = LLMAlertGenerator(api_key="sk-test", rng=random.Random(7), transport=chat_reply(reply))
        alert = asyncio.run(generator.generate(alert_request))
        assert START <= parse_timestamp(alert["@timestamp"]) <= END

    def test_sends_prompt(self, alert_request):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["auth"] = request.headers["Authorization"]
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={"choices": [{"message": {"content": "{}"}}]})

        generator = LLMAlertGenerator(
            api_key="sk-test",
            base_url="https://llm.example/v1/",
            model="test-model",
            transport=httpx.MockTransport(handler),
        )
        asyncio.run(generator.generate(alert_request))

        assert captured["url"] == "https://llm.example/v1/chat/completions"
        assert captured["auth"] == "Bearer sk-test"
        assert captured["body"]["model"] == "test-model"
        system = captured["body"]["messages"][0]["content"]
        assert "srv-007" in system
        assert "T1021.001" in system
        assert "stage 5/8" in system

    def test_http_error_status(self, alert_request):
        transport = httpx.MockTransport(lambda request: httpx.Response(429, text="rate limited"))
        generator = LLMAlertGenerator(api_key="sk-test", transport=transport)
        with pytest.raises(ContentGenerationError, match="429"):
            asyncio.run(generator.generate(alert_request))

    def test_transport_error(self, alert_request):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        generator = LLMAlertGenerator(api_key="sk-test", transport=httpx.MockTransport(handler))
        with pytest.raises(ContentGenerationError):
            asyncio.run(generator.generate(alert_request))

    def test_malformed_response(self, alert_request):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"choices": []}))
        generator = LLMAlertGenerator(api_key="sk-test", transport=transport)
        with pytest.raises(ContentGenerationError):
            asyncio.run(generator.generate(alert_request))

    def test_reply_without_json(self, alert_request):
        generator = LLMAlertGenerator(api_key="sk-test", transport=chat_reply("I cannot help with that"))
        with pytest.raises(ContentGenerationError):
            asyncio.run(generator.generate(alert_request))


class TestBuildContentGenerator:
    """Test generator selection from settings"""

    def test_template_by_default(self):
        generator = build_content_generator(Settings(openai_api_key="sk-test"))
        assert isinstance(generator, TemplateAlertGenerator)

    def test_llm_when_requested_and_configured(self):
        generator = build_content_generator(Settings(openai_api_key="sk-test", openai_model="m"), use_ai=True)
        assert isinstance(generator, LLMAlertGenerator)
        assert generator.model == "m"

    def test_template_when_key_missing(self):
        generator = build_content_generator(Settings(openai_api_key=None), use_ai=True)
        assert isinstance(generator, TemplateAlertGenerator)
