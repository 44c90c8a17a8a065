from __future__ import annotations

# gh release create / view
GH_TIMEOUT_SECONDS = 60.0

# gh release upload (artifacts can be hundreds of MB)
GH_UPLOAD_TIMEOUT_SECONDS = 30 * 60.0

# Build command per matrix job
BUILD_TIMEOUT_SECONDS = 90 * 60.0

# Installer tooling (WiX and similar)
INSTALLER_TIMEOUT_SECONDS = 15 * 60.0
