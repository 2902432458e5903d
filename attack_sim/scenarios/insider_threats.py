"""
Insider Threat Behavior Patterns
================================

Malicious and negligent insider scenarios: data theft, sabotage, fraud and
accidental exposure. Each scenario is an ordered list of activities.
"""

from typing import Dict, List

from ..models.scenario import InsiderActivity, InsiderProfile, InsiderThreatScenario

# Insider Profile Definitions
INSIDER_PROFILES: Dict[str, InsiderProfile] = {
    "DISGRUNTLED_EMPLOYEE": InsiderProfile(
        id="DISGRUNTLED_EMPLOYEE",
        name="Disgruntled Employee",
        role="employee",
        access_level="medium",
        motivation="revenge",
        sophistication="medium",
        behavioral_indicators=(
            "increased_after_hours_access",
            "negative_performance_reviews",
            "disciplinary_actions",
            "unusual_file_access_patterns",
            "downloading_large_datasets",
        ),
    ),
    "PRIVILEGED_ADMIN": InsiderProfile(
        id="PRIVILEGED_ADMIN",
        name="Malicious System Administrator",
        role="privileged_user",
        access_level="administrative",
        motivation="financial",
        sophistication="expert",
        behavioral_indicators=(
            "abuse_of_administrative_privileges",
            "unauthorized_system_modifications",
            "covering_tracks",
            "creating_backdoors",
            "financial_stress_indicators",
        ),
    ),
    "CARELESS_CONTRACTOR": InsiderProfile(
        id="CARELESS_CONTRACTOR",
        name="Negligent Contractor",
        role="contractor",
        access_level="low",
        motivation="negligence",
        sophistication="low",
        behavioral_indicators=(
            "poor_security_practices",
            "policy_violations",
            "unsecured_data_handling",
            "weak_password_usage",
            "social_engineering_susceptibility",
        ),
    ),
    "FINANCIALLY_MOTIVATED": InsiderProfile(
        id="FINANCIALLY_MOTIVATED",
        name="Financially Motivated Insider",
        role="employee",
        access_level="high",
        motivation="financial",
        sophistication="high",
        behavioral_indicators=(
            "financial_difficulties",
            "lifestyle_changes",
            "contact_with_competitors",
            "unusual_data_exfiltration",
            "attempts_to_monetize_access",
        ),
    ),
}

# Insider Threat Scenario Definitions
INSIDER_THREAT_SCENARIOS: Dict[str, InsiderThreatScenario] = {
    "DATA_THEFT_REVENGE": InsiderThreatScenario(
        id="DATA_THEFT_REVENGE",
        name="Revenge-Motivated Data Theft",
        description="Disgruntled employee steals sensitive data before termination",
        insider=INSIDER_PROFILES["DISGRUNTLED_EMPLOYEE"],
        buildup_days=30,
        active_days=7,
        detection_window_days=14,
        activities=(
            InsiderActivity(
                name="escalating_data_access",
                category="data_access",
                risk_level="medium",
                techniques=("T1005", "T1039", "T1083"),
                indicators=(
                    "increased_file_access_frequency",
                    "access_to_sensitive_directories",
                    "large_file_downloads",
                ),
                frequency="daily",
                duration_hours=2,
            ),
            InsiderActivity(
                name="data_staging",
                category="data_access",
                risk_level="high",
                techniques=("T1074", "T1560"),
                indicators=(
                    "creating_large_archives",
                    "staging_data_in_temp_directories",
                    "compressing_sensitive_files",
                ),
                frequency="weekly",
                duration_hours=4,
            ),
            InsiderActivity(
                name="exfiltration_attempt",
                category="network_activity",
                risk_level="critical",
                techniques=("T1052", "T1567"),
                indicators=(
                    "usb_device_usage",
                    "cloud_upload_activity",
                    "email_with_large_attachments",
                ),
                frequency="weekly",
                duration_hours=1,
            ),
        ),
        target_data=("customer_database", "financial_records", "employee_information", "trade_secrets"),
        data_exposure="high",
        financial_impact=500000,
        reputation_damage="high",
    ),
    "ADMIN_BACKDOOR": InsiderThreatScenario(
        id="ADMIN_BACKDOOR",
        name="Administrator Creates Persistent Backdoor",
        description="System administrator creates hidden access for future exploitation",
        insider=INSIDER_PROFILES["PRIVILEGED_ADMIN"],
        buildup_days=90,
        active_days=180,
        detection_window_days=30,
        activities=(
            InsiderActivity(
                name="account_creation",
                category="system_modification",
                risk_level="high",
                techniques=("T1136", "T1078"),
                indicators=(
                    "unauthorized_account_creation",
                    "hidden_admin_accounts",
                    "privilege_escalation",
                ),
                frequency="monthly",
                duration_hours=1,
            ),
            InsiderActivity(
                name="backdoor_installation",
                category="system_modification",
                risk_level="critical",
                techniques=("T1543", "T1547"),
                indicators=(
                    "unauthorized_service_installation",
                    "registry_modifications",
                    "scheduled_task_creation",
                ),
                frequency="monthly",
                duration_hours=2,
            ),
            InsiderActivity(
                name="log_manipulation",
                category="system_modification",
                risk_level="high",
                techniques=("T1070",),
                indicators=(
                    "log_file_modifications",
                    "audit_trail_tampering",
                    "event_log_clearing",
                ),
                frequency="weekly",
                duration_hours=1,
            ),
            InsiderActivity(
                name="data_monetization",
                category="data_access",
                risk_level="critical",
                techniques=("T1005", "T1041"),
                indicators=(
                    "accessing_financial_systems",
                    "downloading_customer_data",
                    "external_communications",
                ),
                frequency="monthly",
                duration_hours=3,
            ),
        ),
        target_data=(
            "customer_financial_data",
            "payment_processing_systems",
            "authentication_databases",
            "system_configurations",
        ),
        data_exposure="critical",
        financial_impact=2000000,
        reputation_damage="critical",
    ),
    "NEGLIGENT_EXPOSURE": InsiderThreatScenario(
        id="NEGLIGENT_EXPOSURE",
        name="Negligent Data Exposure",
        description="Contractor accidentally exposes sensitive data through poor practices",
        insider=INSIDER_PROFILES["CARELESS_CONTRACTOR"],
        buildup_days=7,
        active_days=1,
        detection_window_days=60,
        activities=(
            InsiderActivity(
                name="weak_authentication",
                category="policy_violation",
                risk_level="medium",
                techniques=("T1078", "T1110"),
                indicators=(
                    "weak_password_usage",
                    "shared_account_access",
                    "failed_authentication_attempts",
                ),
                frequency="daily",
                duration_hours=8,
            ),
            InsiderActivity(
                name="unsecured_data_handling",
                category="data_access",
                risk_level="high",
                techniques=("T1005", "T1039"),
                indicators=(
                    "downloading_to_personal_devices",
                    "unsecured_file_sharing",
                    "email_data_transmission",
                ),
                frequency="daily",
                duration_hours=4,
            ),
            InsiderActivity(
                name="accidental_exposure",
                category="data_access",
                risk_level="critical",
                techniques=("T1567", "T1011"),
                indicators=(
                    "public_cloud_misconfiguration",
                    "insecure_file_sharing",
                    "unencrypted_data_transmission",
                ),
                frequency="weekly",
                duration_hours=1,
            ),
        ),
        target_data=(
            "project_documentation",
            "customer_contact_information",
            "internal_communications",
            "system_credentials",
        ),
        data_exposure="medium",
        financial_impact=100000,
        reputation_damage="medium",
    ),
    "INTELLECTUAL_PROPERTY_THEFT": InsiderThreatScenario(
        id="INTELLECTUAL_PROPERTY_THEFT",
        name="Corporate Espionage",
        description="Employee steals trade secrets for competitor benefit",
        insider=INSIDER_PROFILES["FINANCIALLY_MOTIVATED"],
        buildup_days=60,
        active_days=30,
        detection_window_days=21,
        activities=(
            InsiderActivity(
                name="reconnaissance",
                category="data_access",
                risk_level="low",
                techniques=("T1083", "T1135"),
                indicators=(
                    "systematic_file_browsing",
                    "research_and_development_access",
                    "unusual_search_patterns",
                ),
                frequency="weekly",
                duration_hours=3,
            ),
            InsiderActivity(
                name="targeted_collection",
                category="data_access",
                risk_level="high",
                techniques=("T1005", "T1039", "T1113"),
                indicators=(
                    "accessing_proprietary_documents",
                    "screenshot_activity",
                    "copying_source_code",
                ),
                frequency="weekly",
                duration_hours=4,
            ),
            InsiderActivity(
                name="covert_exfiltration",
                category="network_activity",
                risk_level="critical",
                techniques=("T1567", "T1041", "T1052"),
                indicators=(
                    "encrypted_file_transfers",
                    "steganographic_communications",
                    "personal_device_synchronization",
                ),
                frequency="monthly",
                duration_hours=2,
            ),
        ),
        target_data=(
            "research_and_development_data",
            "proprietary_algorithms",
            "customer_lists",
            "business_strategies",
        ),
        data_exposure="critical",
        financial_impact=5000000,
        reputation_damage="high",
    ),
}


def get_all_insider_threat_scenarios() -> List[InsiderThreatScenario]:
    return list(INSIDER_THREAT_SCENARIOS.values())


def get_insider_threat_scenarios_by_motivation(motivation: str) -> List[InsiderThreatScenario]:
    return [s for s in INSIDER_THREAT_SCENARIOS.values() if s.insider.motivation == motivation]


def get_insider_threat_scenarios_by_risk(risk_level: str) -> List[InsiderThreatScenario]:
    """Scenarios with at least one activity at ``risk_level``"""
    return [
        s for s in INSIDER_THREAT_SCENARIOS.values()
        if any(activity.risk_level == risk_level for activity in s.activities)
    ]
