"""BundlePackager: write procedure classes and archives into one bundle.

The bundle is an ordinary zip archive laid out the way the database's class
loader expects a jar:

1. ``META-INF/MANIFEST.MF`` holding only ``Manifest-Version: 1.0``
2. one entry per resource, in the order the resources were supplied

Entry paths always use forward slashes. Duplicate paths are written as-is;
consumers may rely on first-seen-wins, so order is never rearranged and
nothing is deduplicated.

If writing fails, the partially written file is left on disk. Deleting it is
the caller's job.
"""

from __future__ import annotations

import shutil
import time
import warnings
import zipfile
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from provisioner.core.logging import get_logger
from provisioner.packaging.resolver import ResolvedResource

logger = get_logger(__name__)

# ---------------------------------------------------------------------------
# Data models
# ---------------------------------------------------------------------------

MANIFEST_PATH = "META-INF/MANIFEST.MF"
MANIFEST_VERSION = "1.0"
_COPY_BUFFER = 64 * 1024


class BundleState(str, Enum):
    """Lifecycle of a bundle within one provisioning attempt."""

    OPEN = "open"
    SEALED = "sealed"
    UPLOADED = "uploaded"
    DELETED = "deleted"
    RETAINED = "retained"


@dataclass
class Bundle:
    """A bundle file on disk, owned by a single provisioning attempt."""

    path: Path
    entries: list[str] = field(default_factory=list)
    state: BundleState = BundleState.OPEN

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def size(self) -> int:
        """Size of the sealed file in bytes."""
        return self.path.stat().st_size

    def read_bytes(self) -> bytes:
        return self.path.read_bytes()

    def mark_uploaded(self) -> None:
        self.state = BundleState.UPLOADED

    def release(self, *, retain: bool) -> None:
        """Delete the file, or keep it when ``retain`` is set."""
        if retain:
            self.state = BundleState.RETAINED
            logger.info("bundle.retained", path=str(self.path))
            return
        self.path.unlink(missing_ok=True)
        self.state = BundleState.DELETED
        logger.debug("bundle.deleted", path=str(self.path))


@dataclass(frozen=True)
class BundleInfo:
    """What :meth:`BundlePackager.inspect` finds inside a bundle."""

    path: Path
    manifest_version: str | None
    entries: list[str]
    size_bytes: int


def normalize_entry_path(path: str) -> str:
    """Use forward slashes regardless of host conventions."""
    return path.replace("\\", "/")


def _manifest_bytes() -> bytes:
    return f"Manifest-Version: {MANIFEST_VERSION}\r\n\r\n".encode("ascii")


# ---------------------------------------------------------------------------
# BundlePackager
# ---------------------------------------------------------------------------


class BundlePackager:
    """Write resolved resources into a bundle archive.

    Example::

        packager = BundlePackager()
        bundle = packager.package(resources, tmp_dir / "procs.jar")
        print(bundle.entries)

    Parameters
    ----------
    compression : int
        ``zipfile`` compression method. Defaults to ``ZIP_DEFLATED``.
    """

    def __init__(self, *, compression: int = zipfile.ZIP_DEFLATED) -> None:
        self._compression = compression

    def package(
        self,
        resources: Sequence[ResolvedResource],
        destination: str | Path,
    ) -> Bundle:
        """Create (or overwrite) ``destination`` with ``resources``.

        Every resource stream is closed before this returns, whether the
        archive was written or not.

        Returns
        -------
        Bundle
            The sealed bundle.

        Raises
        ------
        OSError
            If the destination cannot be created or an entry cannot be
            written.
        """
        bundle = Bundle(path=Path(destination))
        try:
            with zipfile.ZipFile(bundle.path, "w", compression=self._compression) as zf:
                zf.writestr(self._zip_info(MANIFEST_PATH), _manifest_bytes())
                for resource in resources:
                    entry = normalize_entry_path(resource.entry_path)
                    self._write_entry(zf, entry, resource)
                    bundle.entries.append(entry)
        finally:
            for resource in resources:
                resource.close()

        bundle.state = BundleState.SEALED
        logger.info(
            "bundle.packaged",
            path=str(bundle.path),
            entries=len(bundle.entries),
            size_bytes=bundle.size,
        )
        return bundle

    def inspect(self, archive: str | Path) -> BundleInfo:
        """Read the manifest version and entry list of an existing bundle.

        Raises
        ------
        FileNotFoundError
            If the archive doesn't exist.
        ValueError
            If the file is not a zip archive.
        """
        archive_path = Path(archive)
        if not archive_path.exists():
            raise FileNotFoundError(f"Bundle not found: {archive_path}")

        try:
            with zipfile.ZipFile(archive_path, "r") as zf:
                names = zf.namelist()
                version = None
                if MANIFEST_PATH in names:
                    version = _parse_manifest_version(zf.read(MANIFEST_PATH).decode("utf-8"))
        except zipfile.BadZipFile:
            raise ValueError(f"Not a bundle archive: {archive_path}") from None

        return BundleInfo(
            path=archive_path,
            manifest_version=version,
            entries=[n for n in names if n != MANIFEST_PATH],
            size_bytes=archive_path.stat().st_size,
        )

    # -- internal helpers ----------------------------------------------------

    def _zip_info(self, entry: str) -> zipfile.ZipInfo:
        info = zipfile.ZipInfo(entry, date_time=time.localtime(time.time())[:6])
        info.compress_type = self._compression
        return info

    def _write_entry(self, zf: zipfile.ZipFile, entry: str, resource: ResolvedResource) -> None:
        with warnings.catch_warnings():
            # Duplicate entries are the caller's responsibility.
            warnings.filterwarnings("ignore", message="Duplicate name", category=UserWarning)
            with zf.open(self._zip_info(entry), "w") as target:
                shutil.copyfileobj(resource.stream, target, _COPY_BUFFER)
        resource.close()
        logger.debug("bundle.entry_written", entry=entry, source=resource.name)


def _parse_manifest_version(text: str) -> str | None:
    for line in text.splitlines():
        key, _, value = line.partition(":")
        if key.strip() == "Manifest-Version":
            return value.strip()
    return None
