"""
Test support utilities for schema-provisioner tests.

Helpers that are not pytest fixtures but are shared across test modules.
"""
