"""CUDA host provisioner.

Core design goals:
- Idempotent steps, re-derived from live machine state on every run
- Skip-if-satisfied, fail-fast
- Exact CUDA toolkit version pinning
- One SystemGateway between the logic and the host
- Centralized logging
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
