"""Command-line interface (``schema-provisioner``)."""

from provisioner.cli.app import app

__all__ = ["app"]
