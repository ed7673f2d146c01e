"""
CLI layer for relaykit.

Terminal transport only: argument parsing, coloured output and tables. The
provisioning logic lives in ``relaykit.provision``.

Entry point::

    relaykit --help
"""

from relaykit.cli.app import app

__all__ = ["app"]
