"""
Advanced Persistent Threat (APT) Campaign Patterns
==================================================

Multi-stage APT campaigns modelled on real threat actor behaviour across
the MITRE ATT&CK kill chain.
"""

from typing import Dict, List

from ..models.scenario import APTCampaign, DayRange, HourRange, StageArtifact, StageDef, ThreatActor

# Threat Actor Profiles
THREAT_ACTORS: Dict[str, ThreatActor] = {
    "APT1": ThreatActor(
        id="APT1",
        name="Comment Crew",
        aliases=("PLA Unit 61398", "Comment Group"),
        country="China",
        motivation="espionage",
        sophistication="high",
        preferred_techniques=("T1566.001", "T1059.001", "T1078", "T1021.001"),
        common_tools=("RAR", "AURIGA", "WEBC2", "GREENCAT"),
        infrastructure=("VPS", "compromised_sites", "domain_fronting"),
    ),
    "CARBANAK": ThreatActor(
        id="CARBANAK",
        name="Carbanak Group",
        aliases=("FIN7", "Carbon Spider"),
        country="Unknown",
        motivation="financial",
        sophistication="expert",
        preferred_techniques=("T1566.001", "T1055", "T1021.002", "T1041"),
        common_tools=("Carbanak", "Cobalt Strike", "PowerShell Empire"),
        infrastructure=("bulletproof_hosting", "compromised_email"),
    ),
    "LAZARUS": ThreatActor(
        id="LAZARUS",
        name="Lazarus Group",
        aliases=("Hidden Cobra", "Guardians of Peace"),
        country="North Korea",
        motivation="financial",
        sophistication="expert",
        preferred_techniques=("T1566.002", "T1190", "T1486", "T1567.002"),
        common_tools=("HOPLIGHT", "ELECTRICFISH", "BADCALL"),
        infrastructure=("proxy_chains", "tor_networks", "compromised_infrastructure"),
    ),
}

# APT Campaign Definitions
APT_CAMPAIGNS: Dict[str, APTCampaign] = {
    "OPERATION_AURORA": APTCampaign(
        id="OPERATION_AURORA",
        name="Operation Aurora",
        description="Long-term espionage campaign targeting intellectual property theft",
        threat_actor=THREAT_ACTORS["APT1"],
        duration=DayRange(min=30, max=180),
        complexity="expert",
        industries=("technology", "financial", "defense"),
        geolocations=("US", "EU", "JP"),
        organization_sizes=("large", "enterprise"),
        stages=(
            StageDef(
                name="reconnaissance",
                tactic="TA0043",
                techniques=("T1589", "T1590", "T1593", "T1596"),
                duration=HourRange(min=24, max=168),
                objectives=(
                    "Identify high-value targets",
                    "Map network infrastructure",
                    "Gather employee information",
                ),
                artifacts=(
                    StageArtifact(
                        type="network",
                        name="DNS_RECONNAISSANCE",
                        description="DNS queries to map target infrastructure",
                        detectability="low",
                        iocs=("excessive_dns_queries", "zone_transfer_attempts"),
                    ),
                ),
                next_stages=("initial_access",),
            ),
            StageDef(
                name="initial_access",
                tactic="TA0001",
                techniques=("T1566.001", "T1190"),
                duration=HourRange(min=1, max=24),
                objectives=(
                    "Establish initial foothold",
                    "Deploy first-stage payload",
                ),
                artifacts=(
                    StageArtifact(
                        type="file",
                        name="SPEAR_PHISHING_DOC",
                        description="Malicious PDF with embedded exploit",
                        detectability="medium",
                        iocs=("CVE-2012-0158", "suspicious_pdf_structure"),
                    ),
                ),
                next_stages=("persistence",),
            ),
        ),
    ),
}


def get_all_apt_campaigns() -> List[APTCampaign]:
    return list(APT_CAMPAIGNS.values())


def get_apt_campaigns_by_complexity(complexity: str) -> List[APTCampaign]:
    return [c for c in APT_CAMPAIGNS.values() if c.complexity == complexity]


def get_apt_campaigns_by_actor(actor_id: str) -> List[APTCampaign]:
    return [c for c in APT_CAMPAIGNS.values() if c.threat_actor.id == actor_id]
