"""
Scenario registry: the read-only catalog keyed by category
"""
import random
from typing import Dict, List, Optional, Tuple, Union

from ..core.exceptions import UnknownScenarioType
from ..models.scenario import Scenario, ScenarioCategory
from .apt_campaigns import APT_CAMPAIGNS, get_apt_campaigns_by_actor
from .insider_threats import (
    INSIDER_THREAT_SCENARIOS,
    get_insider_threat_scenarios_by_motivation,
    get_insider_threat_scenarios_by_risk,
)
from .ransomware_chains import RANSOMWARE_CHAINS, get_ransomware_chains_by_industry
from .supply_chain import SUPPLY_CHAIN_ATTACKS, get_supply_chain_attacks_by_target_type

CATALOG: Dict[ScenarioCategory, Tuple[Scenario, ...]] = {
    ScenarioCategory.APT: tuple(APT_CAMPAIGNS.values()),
    ScenarioCategory.RANSOMWARE: tuple(RANSOMWARE_CHAINS.values()),
    ScenarioCategory.INSIDER: tuple(INSIDER_THREAT_SCENARIOS.values()),
    ScenarioCategory.SUPPLY_CHAIN: tuple(SUPPLY_CHAIN_ATTACKS.values()),
}


def resolve_category(scenario_type: Union[str, ScenarioCategory]) -> ScenarioCategory:
    """Map a user-supplied scenario type to its category or raise UnknownScenarioType"""
    if isinstance(scenario_type, ScenarioCategory):
        return scenario_type
    try:
        return ScenarioCategory(scenario_type)
    except ValueError:
        raise UnknownScenarioType(scenario_type) from None


def get_scenarios(scenario_type: Union[str, ScenarioCategory]) -> Tuple[Scenario, ...]:
    return CATALOG[resolve_category(scenario_type)]


def select_scenario(scenario_type: Union[str, ScenarioCategory], rng: random.Random) -> Scenario:
    """Uniformly pick one scenario of the requested category"""
    return rng.choice(get_scenarios(scenario_type))


def get_scenario(scenario_id: str) -> Optional[Scenario]:
    for scenarios in CATALOG.values():
        for scenario in scenarios:
            if scenario.id == scenario_id:
                return scenario
    return None


def by_sophistication(level: str) -> List[Scenario]:
    """Scenarios of every category at the given complexity/sophistication level"""
    return [
        scenario
        for scenarios in CATALOG.values()
        for scenario in scenarios
        if scenario.sophistication == level
    ]


# Category-specific filters
by_complexity = by_sophistication
apt_by_actor = get_apt_campaigns_by_actor
ransomware_by_industry = get_ransomware_chains_by_industry
insider_by_motivation = get_insider_threat_scenarios_by_motivation
insider_by_risk = get_insider_threat_scenarios_by_risk
supply_chain_by_target_type = get_supply_chain_attacks_by_target_type


def find_scenarios(
    category: Optional[Union[str, ScenarioCategory]] = None,
    complexity: Optional[str] = None,
    actor: Optional[str] = None,
    industry: Optional[str] = None,
    motivation: Optional[str] = None,
    risk: Optional[str] = None,
    target_type: Optional[str] = None,
) -> List[Scenario]:
    """
    Catalog scenarios matching every given filter, in catalog order.

    Category-specific filters (``actor``, ``industry``, ``motivation``,
    ``risk``, ``target_type``) only ever match scenarios of their own category.
    """
    if category is not None:
        scenarios = list(get_scenarios(category))
    else:
        scenarios = [scenario for group in CATALOG.values() for scenario in group]

    filters = (
        (complexity, by_complexity),
        (actor, apt_by_actor),
        (industry, ransomware_by_industry),
        (motivation, insider_by_motivation),
        (risk, insider_by_risk),
        (target_type, supply_chain_by_target_type),
    )
    for value, matching in filters:
        if value is not None:
            ids = {scenario.id for scenario in matching(value)}
            scenarios = [scenario for scenario in scenarios if scenario.id in ids]
    return scenarios


def list_scenarios(category: Optional[Union[str, ScenarioCategory]] = None, **filters: Optional[str]) -> List[dict]:
    """Catalog summaries, optionally restricted to one category and narrowed by ``find_scenarios`` filters"""
    return [scenario.summary() for scenario in find_scenarios(category, **filters)]
