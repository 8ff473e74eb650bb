"""Container runtime clients."""

from logpilot.runtime.runtime import RuntimeClient, detect_runtime, get_runtime

__all__ = ["RuntimeClient", "detect_runtime", "get_runtime"]
