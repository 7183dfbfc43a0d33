# ocrbridge/exceptions.py
from typing import Optional


class OCRBridgeError(Exception):
    """Base exception for the ocrbridge library."""
    pass


class ToolNotFoundError(OCRBridgeError):
    """Raised when no launchable EasyOCR command could be resolved."""
    pass


class InvalidSettingError(OCRBridgeError, ValueError):
    """Raised when a recognition setting is outside its allowed range."""
    pass


class SpawnError(OCRBridgeError):
    """Raised when the OS refuses to start the resolved program."""

    def __init__(self, program: str, cause: Optional[OSError] = None):
        self.program = program
        self.cause = cause
        super().__init__(f"Failed to run '{program}': {cause}")


class ToolExitError(OCRBridgeError):
    """Raised when EasyOCR ran but exited with a non-zero status."""

    def __init__(self, returncode: int, stderr: str = "", stdout: str = ""):
        self.returncode = returncode
        self.stderr = stderr or ""
        self.stdout = stdout or ""
        super().__init__(f"EasyOCR exited with status {returncode}")

    def diagnostic(self) -> str:
        return f"EasyOCR exited with error:\n{self.stderr}\n{self.stdout}"
