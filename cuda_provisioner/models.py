from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


@dataclass(frozen=True)
class PackageSpec:
    name: str


@dataclass(frozen=True)
class ToolkitRequirement:
    """Required CUDA toolkit.

    required_version is compared to the installed version by exact string
    equality: "12.8.0" and "12.7" are both rejected when "12.8" is required.
    """

    required_version: str
    package: str
    install_prefix: str


@dataclass(frozen=True)
class BundleDescriptor:
    pin_file_name: str
    pin_url: str
    package_file_name: str
    package_url: str
    distro: Optional[str] = None


@dataclass(frozen=True)
class PlatformContext:
    is_wsl: bool
    distro: str

    @property
    def variant(self) -> str:
        return "wsl" if self.is_wsl else "native"


class ProbeStatus(str, Enum):
    SATISFIED = "satisfied"
    UNSATISFIED = "unsatisfied"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ProbeResult:
    status: ProbeStatus
    reason: str = ""

    @property
    def satisfied(self) -> bool:
        return self.status is ProbeStatus.SATISFIED

    @classmethod
    def ok(cls, reason: str = "") -> "ProbeResult":
        return cls(ProbeStatus.SATISFIED, reason)

    @classmethod
    def missing(cls, reason: str) -> "ProbeResult":
        return cls(ProbeStatus.UNSATISFIED, reason)

    @classmethod
    def unknown(cls, reason: str) -> "ProbeResult":
        return cls(ProbeStatus.UNKNOWN, reason)


class Outcome(str, Enum):
    SATISFIED = "satisfied"
    PERFORMED = "performed"
    FAILED = "failed"


@dataclass(frozen=True)
class RunResult:
    step_id: str
    outcome: Outcome
    message: str = ""


@dataclass(frozen=True)
class PipelineResult:
    results: List[RunResult]

    @property
    def failed(self) -> Optional[RunResult]:
        return next((r for r in self.results if r.outcome is Outcome.FAILED), None)

    @property
    def ok(self) -> bool:
        return self.failed is None

    def step_ids(self, outcome: Outcome) -> List[str]:
        return [r.step_id for r in self.results if r.outcome is outcome]
