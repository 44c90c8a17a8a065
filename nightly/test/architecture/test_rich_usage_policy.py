from __future__ import annotations

from ._gate import require_arch_checks_enabled
from ._utils import is_test_file, iter_python_files, matches_prefix, nightly_root, parse_imports

ALLOWLIST = {"output/console.py"}


def test_rich_is_only_imported_by_the_console() -> None:
    require_arch_checks_enabled()

    root = nightly_root()
    offenders: list[str] = []
    for file_path in iter_python_files(root):
        rel = file_path.relative_to(root)
        if is_test_file(file_path) or rel.as_posix() in ALLOWLIST:
            continue
        for item in parse_imports(file_path):
            if matches_prefix(item.module, "rich"):
                offenders.append(f"{rel}:{item.line}: direct rich import '{item.module}'")

    assert not offenders, "Direct rich usage policy violations:\n" + "\n".join(offenders)
