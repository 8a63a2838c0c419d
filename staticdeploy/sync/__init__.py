"""Sync engine for staticdeploy - change detection and concurrent transfers."""

from .comparator import DeltaDecision, DeltaEngine
from .engine import DeployEngine, DeployStats
from .inventory import Inventory, RemoteInventory, parse_listing
from .operations import DeployOperations
from .scanner import PathFilter, compile_pattern, compile_rules
from .scheduler import TransferFn, TransferScheduler

__all__ = [
    "DeployEngine",
    "DeployStats",
    "DeployOperations",
    "DeltaDecision",
    "DeltaEngine",
    "Inventory",
    "RemoteInventory",
    "parse_listing",
    "PathFilter",
    "compile_pattern",
    "compile_rules",
    "TransferFn",
    "TransferScheduler",
]
