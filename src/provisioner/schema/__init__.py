"""Schema provisioning: existence probe, statement parsing and the builder."""

from provisioner.schema.assembler import BundleAssembler
from provisioner.schema.builder import ProvisioningResult, ProvisioningState, SchemaBuilder
from provisioner.schema.extractor import ProcedureReference, extract_procedure_classes
from provisioner.schema.prober import ExistenceProber, ExistenceVerdict
from provisioner.schema.races import is_already_exists_race, is_procedure_not_found

__all__ = [
    "BundleAssembler",
    "ExistenceProber",
    "ExistenceVerdict",
    "ProcedureReference",
    "ProvisioningResult",
    "ProvisioningState",
    "SchemaBuilder",
    "extract_procedure_classes",
    "is_already_exists_race",
    "is_procedure_not_found",
]
