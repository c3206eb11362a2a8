"""Taskgate - Admission control and live status for background agent tasks.

This package decides when submitted background tasks may run under a
configured concurrency limit, queues the rest in arrival order, and keeps
a notification surface informed of what is running and what is waiting.
"""

__version__ = "0.1.0"
