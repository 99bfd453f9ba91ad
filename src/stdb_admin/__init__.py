"""
stdb_admin - admin tooling for a remote database HTTP API.

Packages
- stdb_admin.core: zero-IO type resolution and SATS-JSON value decoding.
- stdb_admin.io: HTTP client, schema cache, query and mutation workflows.
- stdb_admin.cli: ``stdb-admin`` command line.
"""

__version__ = "0.1.0"
