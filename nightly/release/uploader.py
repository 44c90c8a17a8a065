from __future__ import annotations

from nightly.core.result import Err, Result
from nightly.release.errors import ReleaseError
from nightly.release.model import ArtifactFile
from nightly.release.store import ReleaseStore


def upload_artifact(
    store: ReleaseStore,
    release_tag: str,
    artifact: ArtifactFile,
) -> Result[bool, ReleaseError]:
    """Attach `artifact` to the release tagged `release_tag`.

    Ok(True) once the store holds the file, Ok(False) when the store only
    rehearsed the upload (dry run). The file is left in place whatever the
    outcome; the caller owns it.
    """
    if not artifact.path.is_file():
        return Err(
            ReleaseError(
                kind="invalid_input",
                message=f"artifact file missing: {artifact.path}",
            )
        )
    if artifact.path.name != artifact.logical_name:
        return Err(
            ReleaseError(
                kind="invalid_input",
                message=f"artifact {artifact.path.name} is not named {artifact.logical_name}",
            )
        )

    return store.upload_artifact(tag=release_tag, path=artifact.path)
