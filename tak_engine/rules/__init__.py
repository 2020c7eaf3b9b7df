"""Rules layer: legality, application and victory detection.

    from tak_engine.rules import MoveValidator, MoveApplicator, VictoryDetector
"""

from .applicator import MoveApplicator
from .validator import MoveValidator
from .victory import RoadAxis, VictoryDetector

__all__ = ["MoveApplicator", "MoveValidator", "RoadAxis", "VictoryDetector"]
