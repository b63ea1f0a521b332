"""
Exceptions raised by the deployment helpers.

Everything derives from DeployError so the command line entry point can
report any of them with a single handler.
"""

from typing import Optional


class DeployError(Exception):
    """Base class for deployment failures."""


class MissingRequiredConfig(DeployError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Required setting {name} is not set (environment or override file)")


class InvalidConfigFile(DeployError):
    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read override file {path}: {reason}")


class InvalidAccountReference(DeployError):
    def __init__(self, value: Optional[str]):
        self.value = value
        super().__init__(f"Invalid account id: {value!r}")


class ExternalCommandFailed(DeployError):
    def __init__(self, operation: str, account: Optional[str],
                 returncode: Optional[int] = None, reason: Optional[str] = None):
        self.operation = operation
        self.account = account
        self.returncode = returncode
        self.reason = reason
        target = f" for {account}" if account else ""
        if returncode is not None:
            detail = f"exit code {returncode}"
        else:
            detail = reason or "unknown error"
        super().__init__(f"{operation}{target} failed: {detail}")
