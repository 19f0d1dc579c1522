"""
Bundle packaging: resolve, archive and size-check procedure code.

Architecture::

    ┌──────────────────┐   ResolvedResource   ┌────────────────┐
    │ ResourceResolver │ ───────────────────► │ BundlePackager │ ──► procs.jar
    └──────────────────┘                      └────────────────┘
                                                      │
                                                      ▼
                                            check_bundle_size()

Usage::

    from provisioner.packaging import BundlePackager, ResourceResolver, check_bundle_size

    resolver = ResourceResolver("myapp")
    resources = [resolver.resolve_class("com.example.procs.GetVersion")]
    bundle = BundlePackager().package(resources, "/tmp/procs.jar")
    check_bundle_size(bundle.size)

Tags:
    packaging, bundle, zip, jar, resources

Doc-Types:
    api-reference
"""

from provisioner.packaging.bundle import Bundle, BundleInfo, BundlePackager, BundleState
from provisioner.packaging.resolver import (
    ResolvedResource,
    ResourceResolver,
    class_entry_path,
    namespace_path,
)
from provisioner.packaging.size_guard import check_bundle_size, size_limit

__all__ = [
    "Bundle",
    "BundleInfo",
    "BundlePackager",
    "BundleState",
    "ResolvedResource",
    "ResourceResolver",
    "check_bundle_size",
    "class_entry_path",
    "namespace_path",
    "size_limit",
]
