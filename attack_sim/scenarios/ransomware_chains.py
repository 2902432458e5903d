"""
Ransomware Attack Chain Patterns
================================

Ransomware attack sequences covering enterprise double-extortion and supply
chain compromise campaigns.
"""

from typing import Dict, List

from ..models.scenario import DayRange, HourRange, RansomwareChain, RansomwareGroup, StageDef

# Ransomware Group Definitions
RANSOMWARE_GROUPS: Dict[str, RansomwareGroup] = {
    "CONTI": RansomwareGroup(
        id="CONTI",
        name="Conti",
        aliases=("Wizard Spider", "TrickBot Gang"),
        currency="bitcoin",
        typical_amount=(100000, 25000000),
        encryption_algorithm="Salsa20",
        file_extensions=(".conti",),
        exclusions=("Windows", "ProgramData", "Program Files"),
        double_extortion=True,
        supply_chain=False,
        lateral_movement=("RDP", "SMB", "WMI"),
    ),
    "LOCKBIT": RansomwareGroup(
        id="LOCKBIT",
        name="LockBit",
        aliases=("LockBit 2.0", "LockBit 3.0"),
        currency="bitcoin",
        typical_amount=(50000, 10000000),
        encryption_algorithm="AES-256",
        file_extensions=(".lockbit",),
        exclusions=("Windows", "System32", "Boot"),
        double_extortion=True,
        supply_chain=True,
        lateral_movement=("PowerShell", "WinRM", "SMB"),
    ),
    "DARKSIDE": RansomwareGroup(
        id="DARKSIDE",
        name="DarkSide",
        aliases=("Carbon Spider", "UNC2465"),
        currency="bitcoin",
        typical_amount=(200000, 5000000),
        encryption_algorithm="RSA-1024",
        file_extensions=(".darkside",),
        exclusions=("Windows", "System32", "ProgramData"),
        double_extortion=True,
        supply_chain=False,
        lateral_movement=("RDP", "Cobalt Strike", "PowerShell"),
    ),
}

# Ransomware Chain Definitions
RANSOMWARE_CHAINS: Dict[str, RansomwareChain] = {
    "CONTI_ENTERPRISE": RansomwareChain(
        id="CONTI_ENTERPRISE",
        name="Conti Enterprise Ransomware Campaign",
        description="Multi-stage enterprise ransomware attack with data exfiltration",
        group=RANSOMWARE_GROUPS["CONTI"],
        sophistication_level="expert",
        industries=("healthcare", "manufacturing", "government"),
        organization_sizes=("large", "enterprise"),
        geographic_focus=("US", "EU", "CA"),
        estimated_timeline=DayRange(min=14, max=90),
        stages=(
            StageDef(
                name="initial_access",
                tactic="TA0001",
                techniques=("T1566.001", "T1190"),
                duration=HourRange(min=1, max=24),
                objectives=(
                    "Establish initial foothold via phishing",
                    "Exploit public-facing applications",
                    "Deploy TrickBot loader",
                ),
                indicators=("suspicious_email_attachments", "exploitation_attempts", "trickbot_beacons"),
                next_stages=("persistence", "discovery"),
            ),
            StageDef(
                name="persistence",
                tactic="TA0003",
                techniques=("T1053.005", "T1547.001"),
                duration=HourRange(min=1, max=8),
                objectives=(
                    "Create scheduled tasks",
                    "Modify registry run keys",
                    "Install persistent backdoors",
                ),
                indicators=("scheduled_task_creation", "registry_modifications", "backdoor_installation"),
                next_stages=("discovery", "privilege_escalation"),
            ),
            StageDef(
                name="discovery",
                tactic="TA0007",
                techniques=("T1083", "T1135", "T1018"),
                duration=HourRange(min=12, max=72),
                objectives=(
                    "Map network topology",
                    "Identify valuable data stores",
                    "Locate domain controllers",
                    "Find backup systems",
                ),
                indicators=("network_scanning_activity", "share_enumeration", "ad_reconnaissance"),
                next_stages=("credential_access", "lateral_movement"),
            ),
            StageDef(
                name="credential_access",
                tactic="TA0006",
                techniques=("T1003.001", "T1110.003"),
                duration=HourRange(min=4, max=48),
                objectives=(
                    "Dump LSASS credentials",
                    "Perform password spraying",
                    "Extract cached credentials",
                ),
                indicators=("lsass_access_attempts", "password_spray_patterns", "credential_extraction_tools"),
                next_stages=("lateral_movement", "collection"),
            ),
            StageDef(
                name="lateral_movement",
                tactic="TA0008",
                techniques=("T1021.001", "T1021.002", "T1047"),
                duration=HourRange(min=24, max=168),
                objectives=(
                    "Move to critical systems",
                    "Access domain controllers",
                    "Compromise backup servers",
                    "Deploy Cobalt Strike beacons",
                ),
                indicators=(
                    "rdp_lateral_connections",
                    "smb_lateral_movement",
                    "wmi_execution",
                    "cobalt_strike_activity",
                ),
                next_stages=("collection", "exfiltration"),
            ),
            StageDef(
                name="collection",
                tactic="TA0009",
                techniques=("T1005", "T1039", "T1560"),
                duration=HourRange(min=48, max=336),  # 2-14 days
                objectives=(
                    "Identify sensitive data",
                    "Collect financial records",
                    "Archive customer data",
                    "Gather intellectual property",
                ),
                indicators=("large_file_access", "data_staging_activity", "compression_utilities"),
                next_stages=("exfiltration", "impact"),
            ),
            StageDef(
                name="exfiltration",
                tactic="TA0010",
                techniques=("T1567.002", "T1041"),
                duration=HourRange(min=12, max=72),
                objectives=(
                    "Upload data to cloud storage",
                    "Transfer via C2 channels",
                    "Prepare for double extortion",
                ),
                indicators=("cloud_upload_activity", "large_outbound_transfers", "c2_data_exfiltration"),
                next_stages=("impact",),
            ),
            StageDef(
                name="impact",
                tactic="TA0040",
                techniques=("T1486", "T1490"),
                duration=HourRange(min=2, max=24),
                objectives=(
                    "Deploy Conti ransomware",
                    "Encrypt critical systems",
                    "Delete shadow copies",
                    "Display ransom note",
                ),
                indicators=(
                    "conti_ransomware_execution",
                    "mass_file_encryption",
                    "shadow_copy_deletion",
                    "ransom_note_creation",
                ),
            ),
        ),
    ),
    "LOCKBIT_SUPPLY_CHAIN": RansomwareChain(
        id="LOCKBIT_SUPPLY_CHAIN",
        name="LockBit Supply Chain Attack",
        description="Supply chain compromise leading to multiple victim encryption",
        group=RANSOMWARE_GROUPS["LOCKBIT"],
        sophistication_level="expert",
        industries=("technology", "msp", "software"),
        organization_sizes=("medium", "large"),
        geographic_focus=("global",),
        estimated_timeline=DayRange(min=30, max=180),
        stages=(
            StageDef(
                name="supply_chain_compromise",
                tactic="TA0001",
                techniques=("T1195.002",),
                duration=HourRange(min=168, max=720),  # 1-4 weeks
                objectives=(
                    "Compromise software vendor",
                    "Inject malicious code",
                    "Prepare trojanized updates",
                ),
                indicators=("vendor_system_compromise", "code_signing_abuse", "malicious_updates"),
                next_stages=("distribution",),
            ),
            StageDef(
                name="distribution",
                tactic="TA0001",
                techniques=("T1195.002", "T1078"),
                duration=HourRange(min=24, max=168),
                objectives=(
                    "Distribute trojanized software",
                    "Infect downstream customers",
                    "Establish multiple footholds",
                ),
                indicators=("software_distribution", "customer_infections", "multiple_beacons"),
                next_stages=("activation",),
            ),
            StageDef(
                name="activation",
                tactic="TA0002",
                techniques=("T1053.005", "T1204.002"),
                duration=HourRange(min=1, max=72),
                objectives=(
                    "Activate dormant payloads",
                    "Begin reconnaissance phase",
                    "Establish C2 communications",
                ),
                indicators=("payload_activation", "c2_establishment", "initial_reconnaissance"),
                next_stages=("mass_encryption",),
            ),
            StageDef(
                name="mass_encryption",
                tactic="TA0040",
                techniques=("T1486", "T1561"),
                duration=HourRange(min=1, max=12),
                objectives=(
                    "Simultaneously encrypt multiple victims",
                    "Deploy LockBit ransomware",
                    "Maximize impact and pressure",
                ),
                indicators=("mass_encryption_event", "lockbit_deployment", "ransom_demands"),
            ),
        ),
    ),
}


def get_all_ransomware_chains() -> List[RansomwareChain]:
    return list(RANSOMWARE_CHAINS.values())


def get_ransomware_chains_by_sophistication(sophistication: str) -> List[RansomwareChain]:
    return [c for c in RANSOMWARE_CHAINS.values() if c.sophistication_level == sophistication]


def get_ransomware_chains_by_industry(industry: str) -> List[RansomwareChain]:
    return [c for c in RANSOMWARE_CHAINS.values() if industry in c.industries]
