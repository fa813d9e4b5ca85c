"""Reporter modules receiving test lifecycle events."""

from .base import CompositeReporter, Reporter
from .console import ConsoleReporter

__all__ = ["Reporter", "CompositeReporter", "ConsoleReporter"]
