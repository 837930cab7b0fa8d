"""Counter that ticks once per second and persists its value across restarts."""

__version__ = "0.1.0"
