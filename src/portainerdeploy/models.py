"""Shared domain models for portainerdeploy."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Endpoint:
    """Execution environment registered with the control plane."""

    id: int
    name: str


@dataclass(frozen=True)
class Registry:
    id: int
    url: str


@dataclass(frozen=True)
class Stack:
    id: int
    name: str


@dataclass(frozen=True)
class StackAction:
    """Outcome of a reconciliation: which branch ran and against which stack."""

    action: str
    stack_name: str
    stack_id: Optional[int] = None
    dry_run: bool = False
