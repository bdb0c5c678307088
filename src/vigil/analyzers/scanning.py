"""Source tree helpers shared by the analyzers."""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

IMPORT_RE = re.compile(r"""import.*from\s+['"]([^'"]+)['"]""")
INTERFACE_RE = re.compile(r"(?:export\s+)?interface\s+(\w+)")


@dataclass(frozen=True)
class ProjectLayout:
    """Conventional locations inside the audited project."""

    root: Path

    @property
    def src(self) -> Path:
        return self.root / "src"

    @property
    def lib(self) -> Path:
        return self.root / "src" / "lib"

    @property
    def api(self) -> Path:
        return self.root / "src" / "app" / "api"

    @property
    def build(self) -> Path:
        return self.root / ".next"

    def relative(self, path: Path) -> str:
        """Path relative to the project root, with forward slashes."""
        try:
            return path.relative_to(self.root).as_posix()
        except ValueError:
            return path.as_posix()


@dataclass(frozen=True)
class ImportRef:
    path: str
    line: int


def iter_ts_files(directory: Path) -> Iterator[Path]:
    """Yield ``.ts`` files under a directory, skipping declaration files."""
    if not directory.is_dir():
        return
    for path in sorted(directory.rglob("*.ts")):
        if path.is_file() and not path.name.endswith(".d.ts"):
            yield path


def iter_route_files(directory: Path) -> Iterator[Path]:
    if not directory.is_dir():
        return
    yield from sorted(p for p in directory.rglob("route.ts") if p.is_file())


def read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="replace")


def extract_imports(content: str) -> list[ImportRef]:
    """Return import specifiers with their 1-based line numbers."""
    imports: list[ImportRef] = []
    for number, line in enumerate(content.splitlines(), start=1):
        match = IMPORT_RE.search(line)
        if match:
            imports.append(ImportRef(path=match.group(1), line=number))
    return imports


def extract_interfaces(content: str) -> list[str]:
    return INTERFACE_RE.findall(content)


def directory_size(directory: Path) -> int:
    """Total size in bytes of all files below a directory."""
    if not directory.is_dir():
        return 0
    return sum(p.stat().st_size for p in directory.rglob("*") if p.is_file())


def contains_any(content: str, *markers: str) -> bool:
    return any(marker in content for marker in markers)
