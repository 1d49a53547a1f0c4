# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Transport adapters for catalog servers.

These thin wrappers isolate the reference SDK's transport primitives so that
applications can swap or extend them without touching the core server class.
"""

from __future__ import annotations

from .base import BaseTransport, TransportFactory
from .sse import SSETransport
from .stdio import StdioTransport


__all__ = ["BaseTransport", "SSETransport", "StdioTransport", "TransportFactory"]
