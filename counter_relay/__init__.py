"""
Sui Counter Relay
=================

Thin FastAPI-based relay between HTTP clients and a Move ``counter`` module
deployed on Sui: create / increment / reset / read, plus transaction and
module diagnostics.

The application factory lives in ``counter_relay.app.create_app``; import
submodules directly for specific concerns: ``counter_relay.config``,
``counter_relay.logging``, ``counter_relay.services.*``, etc.
"""

from __future__ import annotations

from .version import __version__

__all__ = ["__version__"]
