"""Precondition checker: the compose manifest must exist before anything is launched."""

from __future__ import annotations

from pathlib import Path

from relaykit.core.errors import MissingManifestError
from relaykit.core.logging import get_logger
from relaykit.provision.results import StepResult

logger = get_logger(__name__)


def check_manifest(manifest_path: Path, project_dir: Path | None = None) -> Path:
    """Return ``manifest_path`` if it is an existing file, else raise ``MissingManifestError``."""
    manifest_path = Path(manifest_path)
    if not manifest_path.is_file():
        logger.error("precondition.manifest_missing", path=str(manifest_path))
        raise MissingManifestError(manifest_path, project_dir).with_context(step=PreconditionChecker.name)
    logger.info("precondition.manifest_found", path=str(manifest_path))
    return manifest_path


class PreconditionChecker:
    name = "precondition"

    def __init__(self, manifest_path: Path, project_dir: Path | None = None) -> None:
        self.manifest_path = Path(manifest_path)
        self.project_dir = project_dir

    def run(self) -> StepResult:
        check_manifest(self.manifest_path, self.project_dir)
        return StepResult(name=self.name, detail=f"{self.manifest_path} found")
