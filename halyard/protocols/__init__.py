from halyard.protocols.execution import CommandResult, CommandRunner

__all__ = ["CommandResult", "CommandRunner"]
