"""Execution-order dependencies: parsing and set operations for @depends declarations."""

from execution_order.dependency import (
    CLASS_TARGET,
    ExecutionOrderDependency,
    diff,
    filter_invalid,
    merge_unique,
)
from execution_order.manifest import DependencyManifest

__all__ = [
    "CLASS_TARGET",
    "DependencyManifest",
    "ExecutionOrderDependency",
    "diff",
    "filter_invalid",
    "merge_unique",
]
