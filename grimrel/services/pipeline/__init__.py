"""Platform release pipeline: build, stage, package, checksum and publish."""

from grimrel.services.pipeline.context import PipelineContext
from grimrel.services.pipeline.errors import PipelineError
from grimrel.services.pipeline.model import (
    Artifact,
    PartialFailure,
    ReleaseRecord,
    TargetArtifacts,
    TargetOutcome,
)
from grimrel.services.pipeline.publish import DirectoryPublisher, GitHubPublisher, Publisher
from grimrel.services.pipeline.runner import run_pipeline, run_target
from grimrel.services.pipeline.targets import MATRIX, PackagingKind, PlatformTarget, validate_matrix

__all__ = [
    "Artifact",
    "DirectoryPublisher",
    "GitHubPublisher",
    "MATRIX",
    "PackagingKind",
    "PartialFailure",
    "PipelineContext",
    "PipelineError",
    "PlatformTarget",
    "Publisher",
    "ReleaseRecord",
    "TargetArtifacts",
    "TargetOutcome",
    "run_pipeline",
    "run_target",
    "validate_matrix",
]
