"""
rtwroster.resolver - Availability Resolution

Judges requirement trees under evaluation contexts and resolves the
decoded mod data into the final roster model.
"""

from rtwroster.resolver.aliases import AliasTable, AliasLookupError, CyclicAliasError
from rtwroster.resolver.context import Tri, Choices, Context
from rtwroster.resolver.evaluator import try_evaluate, evaluate
from rtwroster.resolver.aggregate import (
    UnitLookupError,
    build_requirements,
    build_tech_levels,
    tech_level,
)
from rtwroster.resolver.builder import ModelBuilder, build_model

__all__ = [
    # Aliases
    "AliasTable",
    "AliasLookupError",
    "CyclicAliasError",
    # Evaluation
    "Tri",
    "Choices",
    "Context",
    "try_evaluate",
    "evaluate",
    # Aggregation
    "UnitLookupError",
    "build_requirements",
    "build_tech_levels",
    "tech_level",
    # Model
    "ModelBuilder",
    "build_model",
]
