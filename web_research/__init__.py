"""Autonomous planned web research agent"""

__version__ = "0.1.0"
