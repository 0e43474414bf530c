"""ProjectContext — the immutable input every analyzer reads."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

from code_score.core.discover import SamplingPolicy
from code_score.core.manifest import Manifest
from code_score.model import Ecosystem


@dataclass(frozen=True)
class ScoreOptions:
    """Caller-supplied switches for one run."""

    categories: tuple[str, ...] = ()
    verbose: bool = False
    include_details: bool = True
    include_recommendations: bool = True


@dataclass(frozen=True)
class ProjectContext:
    """Snapshot of the project under analysis.

    Built once per run by the facade and passed explicitly to every
    component; nothing mutates it.
    """

    root: Path
    project_type: str = "generic"
    framework: str | None = None
    manifest: Manifest | None = None
    dependencies: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    options: ScoreOptions = field(default_factory=ScoreOptions)
    sampling: SamplingPolicy = field(default_factory=SamplingPolicy)
    exclude_dirs: tuple[str, ...] = ()

    @classmethod
    def build(
        cls,
        root: Path,
        *,
        manifest: Manifest | None,
        project_type: str,
        framework: str | None = None,
        options: ScoreOptions | None = None,
        sampling: SamplingPolicy | None = None,
        exclude_dirs: tuple[str, ...] = (),
    ) -> ProjectContext:
        deps = manifest.all_dependencies if manifest is not None else MappingProxyType({})
        return cls(
            root=root,
            project_type=project_type,
            framework=framework,
            manifest=manifest,
            dependencies=deps,
            options=options or ScoreOptions(),
            sampling=sampling or SamplingPolicy(),
            exclude_dirs=tuple(exclude_dirs),
        )

    @property
    def ecosystem(self) -> Ecosystem | None:
        return self.manifest.ecosystem if self.manifest is not None else None

    @property
    def project_name(self) -> str:
        if self.manifest is not None and self.manifest.name:
            return self.manifest.name
        return self.root.name

    def has_dependency(self, *names: str) -> bool:
        return any(n.lower() in self.dependencies for n in names)
