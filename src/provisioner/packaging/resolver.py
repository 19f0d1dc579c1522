"""Locate class files and archives shipped inside the application.

Procedure classes and auxiliary archives travel with the application as
package data. ``ResourceResolver`` looks them up by logical path under a root
(an importable package, a directory, or any ``importlib.resources``
traversable) and hands back an open binary stream. A missing resource is a
deployment defect and fails immediately with ``MissingResourceError``.
"""

from __future__ import annotations

from dataclasses import dataclass
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path
from typing import BinaryIO

from provisioner.core.errors import MissingResourceError
from provisioner.core.logging import get_logger

logger = get_logger(__name__)

CLASS_SUFFIX = ".class"


def namespace_path(namespace: str) -> str:
    """``com.example.procs`` → ``com/example/procs``."""
    return namespace.replace(".", "/")


def class_entry_path(qualified_name: str) -> str:
    """``com.example.Foo`` → ``com/example/Foo.class``."""
    return namespace_path(qualified_name) + CLASS_SUFFIX


@dataclass
class ResolvedResource:
    """An embedded resource ready to be written into a bundle.

    The stream is owned by whoever consumes it; the packager closes it.
    """

    name: str
    entry_path: str
    stream: BinaryIO

    def close(self) -> None:
        self.stream.close()


class ResourceResolver:
    """Resolve logical resource paths against an embedded resource root.

    Parameters
    ----------
    root
        Package name (``"myapp.procedures"``), a directory ``Path``, or a
        ``Traversable`` returned by ``importlib.resources.files``.

    Example::

        resolver = ResourceResolver("myapp")
        res = resolver.resolve("com/example/procs/GetVersion.class")
    """

    def __init__(self, root: str | Path | Traversable) -> None:
        if isinstance(root, str):
            self._root: Traversable = resources.files(root)
        else:
            self._root = root
        self._label = str(root)

    @property
    def root(self) -> Traversable:
        return self._root

    def exists(self, resource_path: str) -> bool:
        """Return ``True`` when ``resource_path`` names a file under the root."""
        return self._locate(resource_path).is_file()

    def resolve(self, resource_path: str, entry_path: str | None = None) -> ResolvedResource:
        """Open ``resource_path`` for reading.

        Parameters
        ----------
        resource_path
            Slash-separated path relative to the root. A leading ``/`` is
            accepted and ignored.
        entry_path
            Path the resource should get inside the bundle. Defaults to
            ``resource_path`` without the leading slash.

        Raises
        ------
        MissingResourceError
            If nothing exists at ``resource_path``.
        """
        relative = resource_path.lstrip("/")
        target = self._locate(relative)
        if not target.is_file():
            raise MissingResourceError(resource_path).with_context(root=self._label)

        try:
            stream = target.open("rb")
        except FileNotFoundError as exc:
            raise MissingResourceError(resource_path).with_context(root=self._label) from exc

        logger.debug("resource.resolved", path=resource_path, root=self._label)
        return ResolvedResource(
            name=resource_path,
            entry_path=entry_path or relative,
            stream=stream,
        )

    def resolve_class(self, qualified_name: str) -> ResolvedResource:
        """Resolve a compiled class by its fully qualified name."""
        path = class_entry_path(qualified_name)
        return self.resolve("/" + path, entry_path=path)

    def _locate(self, resource_path: str) -> Traversable:
        parts = [p for p in resource_path.lstrip("/").split("/") if p]
        return self._root.joinpath(*parts)
