"""Archive and repository security audit toolkit."""

from .orchestrator import Orchestrator

__version__ = "0.1.0"

__all__ = ["Orchestrator", "__version__"]
