"""
Shared pytest fixtures for the attack campaign simulator tests
"""
import asyncio
import random
from datetime import datetime, timezone

import pytest

from attack_sim.core.config import Settings
from attack_sim.core.exceptions import ContentGenerationError
from attack_sim.models.event import AlertRequest
from attack_sim.services.content_generator import TemplateAlertGenerator
from attack_sim.services.simulation_engine import AttackSimulationEngine

FIXED_NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class RecordingGenerator(TemplateAlertGenerator):
    """Template generator that remembers every request it served"""

    def __init__(self, rng=None):
        super().__init__(rng)
        self.requests = []

    async def generate(self, request: AlertRequest):
        self.requests.append(request)
        return self.build_alert(request)


class FailingTechniqueGenerator(RecordingGenerator):
    """Raises for the configured techniques, generates normally otherwise"""

    def __init__(self, failing, rng=None):
        super().__init__(rng)
        self.failing = set(failing)

    async def generate(self, request: AlertRequest):
        self.requests.append(request)
        if request.technique in self.failing:
            raise ContentGenerationError(f"upstream refused {request.technique}")
        return self.build_alert(request)


class SlowGenerator(RecordingGenerator):
    """Sleeps before answering and tracks how many calls overlap"""

    def __init__(self, delay, rng=None):
        super().__init__(rng)
        self.delay = delay
        self.in_flight = 0
        self.max_in_flight = 0

    async def generate(self, request: AlertRequest):
        self.requests.append(request)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
        finally:
            self.in_flight -= 1
        return self.build_alert(request)


@pytest.fixture
def fixed_now():
    """Provide a consistent 'now' for testing"""
    return FIXED_NOW


@pytest.fixture
def clock():
    """Clock that always returns the fixed 'now'"""
    return lambda: FIXED_NOW


@pytest.fixture
def rng():
    """Seeded random source for reproducible campaigns"""
    return random.Random(1234)


@pytest.fixture
def fast_settings():
    """Settings without pauses between batches and with short timeouts"""
    return Settings(
        generator_batch_pause_seconds=0,
        generator_call_timeout_seconds=2.0,
        generator_batch_deadline_seconds=5.0,
        correlation_reference="batch",
    )


@pytest.fixture
def make_engine(rng, clock, fast_settings):
    """Factory for engines sharing the seeded rng and fixed clock"""
    def _make(generator=None, settings=None, **kwargs):
        return AttackSimulationEngine(
            generator=generator,
            rng=rng,
            clock=clock,
            settings=settings or fast_settings,
            **kwargs,
        )
    return _make


@pytest.fixture
def recording_generator(rng):
    return RecordingGenerator(rng)
