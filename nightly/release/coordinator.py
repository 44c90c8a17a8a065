from __future__ import annotations

from nightly.core.result import Err, Ok, Result
from nightly.release.errors import ReleaseError
from nightly.release.identity import ReleaseIdentity
from nightly.release.model import ReleaseNaming, ReleaseRecord
from nightly.release.store import ReleaseStore


def create_release(
    identity: ReleaseIdentity,
    store: ReleaseStore,
    naming: ReleaseNaming | None = None,
    *,
    target: str | None = None,
) -> Result[ReleaseRecord, ReleaseError]:
    """Create the prerelease record for `identity`.

    Not idempotent: a second call for the same day fails with
    `already_exists` instead of reusing the existing release.
    """
    naming = naming or ReleaseNaming()
    tag = naming.tag(identity)
    title = naming.title(identity)

    created = store.create_release(
        tag=tag,
        title=title,
        prerelease=True,
        generate_notes=True,
        target=target,
    )
    if isinstance(created, Err):
        return created

    return Ok(ReleaseRecord(tag=tag, title=title, prerelease=True, upload_target=tag))
