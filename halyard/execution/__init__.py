from halyard.execution.runner import AsyncSubprocessRunner

__all__ = ["AsyncSubprocessRunner"]
