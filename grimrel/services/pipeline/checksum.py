"""SHA-256 sidecar files in ``sha256sum`` format.

Each artifact ``X`` gets a sidecar ``X-sha256sum.txt`` holding exactly one
line: ``<64 lowercase hex>  X``. ``sha256sum -c`` accepts it unchanged.
"""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass
from pathlib import Path

from grimrel.core.result import Err, Ok, Result
from grimrel.platform.files import atomic_write_text
from grimrel.services.pipeline.model import Artifact
from grimrel.services.pipeline.targets import checksum_name

_LINE_RE = re.compile(r"^(?P<digest>[0-9a-f]{64}) [ *](?P<name>[^\r\n/\\]+)$")
_CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True, slots=True)
class ChecksumMismatch:
    path: Path
    message: str


def sha256_file(path: Path) -> str:
    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            h.update(chunk)
    return h.hexdigest()


def checksum_line(digest: str, name: str) -> str:
    return f"{digest}  {name}\n"


def write_checksum(artifact_path: Path) -> Artifact:
    """Hash artifact_path and write its sidecar next to it."""
    digest = sha256_file(artifact_path)
    sidecar = artifact_path.with_name(checksum_name(artifact_path.name))
    atomic_write_text(sidecar, checksum_line(digest, artifact_path.name))
    return Artifact(path=artifact_path, sha256=digest, checksum_path=sidecar)


def parse_checksum_file(path: Path) -> Result[tuple[str, str], ChecksumMismatch]:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        return Err(ChecksumMismatch(path, f"cannot read checksum file: {e}"))

    lines = [line for line in text.splitlines() if line.strip()]
    if len(lines) != 1:
        return Err(ChecksumMismatch(path, f"expected one checksum line, found {len(lines)}"))
    match = _LINE_RE.match(lines[0])
    if match is None:
        return Err(ChecksumMismatch(path, "malformed checksum line"))
    return Ok((match.group("digest"), match.group("name")))


def verify_checksum_file(path: Path) -> Result[Path, ChecksumMismatch]:
    """Recompute the digest of the file a sidecar names; Ok(artifact path) on match.

    The artifact is looked up next to the sidecar.
    """
    parsed = parse_checksum_file(path)
    if isinstance(parsed, Err):
        return parsed
    expected, name = parsed.value

    artifact = path.parent / name
    if not artifact.is_file():
        return Err(ChecksumMismatch(artifact, f"artifact not found: {name}"))

    actual = sha256_file(artifact)
    if actual != expected:
        return Err(ChecksumMismatch(artifact, f"sha256 mismatch: expected {expected}, got {actual}"))
    return Ok(artifact)
