"""
Schema provisioner - create a database schema and its stored procedures once.

- provisioner.core: errors, logging, settings, client protocol, specs
- provisioner.packaging: resource lookup, bundle archive, size budget
- provisioner.schema: existence probe, FROM CLASS parsing, SchemaBuilder
"""

__version__ = "0.1.0"

from provisioner.core import *  # noqa
from provisioner.schema import SchemaBuilder  # noqa: E402
from provisioner.packaging import ResourceResolver  # noqa: E402
