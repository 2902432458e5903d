"""Multi-stage attack campaign simulator for Elastic Security"""

__version__ = "1.0.0"
