"""
Version helpers for the Sui Counter Relay.

- ``__version__`` is the semantic version for packaging.
- ``version_blob()`` returns the metadata served by the health router.
"""

from __future__ import annotations

import sys
from typing import Any, Dict

# Bump this when making a release; use semver (MAJOR.MINOR.PATCH)
__version__ = "0.1.0"

SERVICE_NAME = "counter-relay"


def version_blob() -> Dict[str, Any]:
    return {
        "service": SERVICE_NAME,
        "version": __version__,
        "python": {
            "version": "{}.{}.{}".format(*sys.version_info[:3]),
            "impl": sys.implementation.name,
        },
    }


__all__ = ["__version__", "SERVICE_NAME", "version_blob"]
