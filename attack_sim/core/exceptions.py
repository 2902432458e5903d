"""Exception hierarchy for the simulator"""


class SimulationError(Exception):
    """Base class for simulator errors"""


class UnknownScenarioType(SimulationError, ValueError):
    """Raised when a scenario type outside the catalog categories is requested"""

    def __init__(self, scenario_type):
        self.scenario_type = scenario_type
        super().__init__(f"Unknown scenario type: {scenario_type}")


class ContentGenerationError(SimulationError):
    """A content generator could not produce an event"""


class DocumentSinkError(SimulationError):
    """Bulk indexing or index/space provisioning failed"""


class InvalidComplexity(SimulationError, ValueError):
    """Raised when a complexity outside low/medium/high/expert is requested"""

    def __init__(self, complexity):
        self.complexity = complexity
        super().__init__(f"Unknown complexity: {complexity}")
