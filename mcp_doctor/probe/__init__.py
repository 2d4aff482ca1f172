"""Server health probing components."""

from .framer import LineFramer
from .logger import ProbeLogger
from .prober import HandshakeProber
from .orchestrator import ProbeOrchestrator, merge_probe_results

__all__ = [
    "LineFramer",
    "ProbeLogger",
    "HandshakeProber",
    "ProbeOrchestrator",
    "merge_probe_results",
]
