"""Turn a provisioning spec into a sealed, size-checked bundle.

Entry order inside the bundle is fixed:

1. auxiliary classes (``code_unit_names``) → ``a/b/C.class``
2. procedure classes from ``FROM CLASS`` statements → ``a/b/Proc.class``
   (bare names land in the namespace directory)
3. auxiliary archives → ``<namespace dir>/<archive>``

No database is involved, so the CLI uses this directly to build bundles
offline.
"""

from __future__ import annotations

from pathlib import Path

from provisioner.core.logging import get_logger
from provisioner.core.settings import ProvisionerSettings
from provisioner.core.spec import ProvisioningSpec
from provisioner.packaging.bundle import Bundle, BundlePackager
from provisioner.packaging.resolver import (
    ResolvedResource,
    ResourceResolver,
    class_entry_path,
    namespace_path,
)
from provisioner.packaging.size_guard import check_bundle_size
from provisioner.schema.extractor import ProcedureReference, extract_procedure_classes

logger = get_logger(__name__)


class BundleAssembler:
    """Resolve the resources a spec needs and write them into a bundle."""

    def __init__(
        self,
        spec: ProvisioningSpec,
        resolver: ResourceResolver,
        *,
        settings: ProvisionerSettings | None = None,
        packager: BundlePackager | None = None,
        references: list[ProcedureReference] | None = None,
    ) -> None:
        self._spec = spec
        self._resolver = resolver
        self._settings = settings or ProvisionerSettings()
        self._packager = packager or BundlePackager()
        if references is None:
            references = extract_procedure_classes(spec.procedure_statements)
        self._references = references

    @property
    def references(self) -> list[ProcedureReference]:
        return list(self._references)

    def entry_paths(self) -> list[str]:
        """Bundle entry paths in write order."""
        base = namespace_path(self._spec.namespace)
        paths = [class_entry_path(name) for name in self._spec.code_unit_names]
        paths.extend(ref.entry_path(self._spec.namespace) for ref in self._references)
        paths.extend(f"{base}/{archive}" for archive in self._spec.archive_names)
        return paths

    def resolve(self) -> list[ResolvedResource]:
        """Open every resource; nothing stays open if one is missing."""
        resolved: list[ResolvedResource] = []
        try:
            for path in self.entry_paths():
                logger.info("bundle.adding", resource="/" + path)
                resolved.append(self._resolver.resolve("/" + path, entry_path=path))
        except Exception:
            for resource in resolved:
                resource.close()
            raise
        return resolved

    def package(self, directory: str | Path, *, keep_on_failure: bool = False) -> Bundle:
        """Write the bundle into ``directory`` without checking its size.

        A partially written file is removed unless ``keep_on_failure``.

        Raises
        ------
        MissingResourceError
            If a class or archive cannot be found.
        OSError
            If the archive cannot be written.
        """
        destination = Path(directory) / self._spec.bundle_file_name
        logger.info("bundle.creating", path=str(destination))
        try:
            return self._packager.package(self.resolve(), destination)
        except Exception:
            if not keep_on_failure:
                destination.unlink(missing_ok=True)
            raise

    def check_size(self, bundle: Bundle, *, keep_on_failure: bool = False) -> None:
        """Enforce the transport size budget on a sealed bundle.

        Raises
        ------
        BundleTooLargeError
            If the bundle is over budget. The file is removed first unless
            ``keep_on_failure``.
        """
        try:
            check_bundle_size(
                bundle.size,
                self._settings.max_message_length,
                name=bundle.name,
            )
        except Exception:
            if not keep_on_failure:
                bundle.release(retain=False)
            raise

    def build(self, directory: str | Path, *, keep_on_failure: bool = False) -> Bundle:
        """Package into ``directory`` and enforce the size budget."""
        bundle = self.package(directory, keep_on_failure=keep_on_failure)
        self.check_size(bundle, keep_on_failure=keep_on_failure)
        return bundle
