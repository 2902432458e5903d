"""
Synthetic network topology and target helpers
"""
import random
from typing import Dict, List, Tuple

from ..models.simulation import CriticalAsset, LateralMovementPath, NetworkSubnet, NetworkTopology

HOST_PREFIXES = ("ws", "srv", "dc", "db", "web", "app", "mail")

# Candidate account roles per kill-chain stage
STAGE_USER_ROLES: Dict[str, Tuple[str, ...]] = {
    "reconnaissance": ("analyst", "researcher", "intern"),
    "initial_access": ("user", "employee", "contractor"),
    "persistence": ("admin", "sysadmin", "service"),
    "privilege_escalation": ("admin", "root", "system"),
    "credential_access": ("admin", "backup", "service"),
    "lateral_movement": ("admin", "domain_admin", "service"),
    "collection": ("user", "analyst", "manager"),
    "exfiltration": ("admin", "backup", "transfer"),
}
DEFAULT_USER_ROLES = ("user", "admin")


def build_network_topology() -> NetworkTopology:
    """DMZ, internal and critical subnets with the two crown-jewel servers"""
    subnets = [
        NetworkSubnet(
            id="dmz",
            cidr="10.1.0.0/24",
            name="DMZ",
            security_zone="dmz",
            host_count=50,
            services=["web", "dns", "email"],
        ),
        NetworkSubnet(
            id="internal",
            cidr="10.2.0.0/16",
            name="Internal Network",
            security_zone="internal",
            host_count=1000,
            services=["file_share", "print", "application"],
        ),
        NetworkSubnet(
            id="critical",
            cidr="10.3.0.0/24",
            name="Critical Infrastructure",
            security_zone="critical",
            host_count=20,
            services=["domain_controller", "database", "backup"],
        ),
    ]
    critical_assets = [
        CriticalAsset(
            id="dc01",
            hostname="dc01.corp.local",
            ip_address="10.3.0.10",
            subnet_id="critical",
            asset_type="domain_controller",
            criticality="critical",
            os_family="windows",
            services=["ldap", "kerberos", "dns"],
        ),
        CriticalAsset(
            id="db01",
            hostname="db01.corp.local",
            ip_address="10.3.0.20",
            subnet_id="critical",
            asset_type="database",
            criticality="critical",
            os_family="linux",
            services=["mysql", "backup"],
        ),
    ]
    return NetworkTopology(subnets=subnets, critical_assets=critical_assets)


def build_lateral_movement_paths() -> List[LateralMovementPath]:
    return [
        LateralMovementPath(
            id="workstation_to_dc",
            source_asset="workstation",
            target_asset="domain_controller",
            techniques=["T1021.001", "T1078.002"],
            prerequisites=["valid_credentials", "network_access"],
            success_probability=0.7,
            detection_likelihood=0.6,
        )
    ]


def generate_target_hosts(count: int, rng: random.Random) -> List[str]:
    """``count`` hostnames shaped like ``srv-042``"""
    return [f"{rng.choice(HOST_PREFIXES)}-{rng.randint(0, 999):03d}" for _ in range(max(count, 0))]


def contextual_username(stage_name: str, rng: random.Random) -> str:
    """Account name whose role fits what the attacker does in this stage"""
    role = rng.choice(STAGE_USER_ROLES.get(stage_name, DEFAULT_USER_ROLES))
    return f"{role}_{rng.randint(1, 999)}"
