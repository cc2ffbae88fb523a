from __future__ import annotations


class TidemarkError(Exception):
    """Base exception class for all Tidemark-specific errors.

    This is the root of the Tidemark exception hierarchy. All custom exceptions
    raised by this package inherit from this class, which allows callers to
    catch every Tidemark failure at an API or CLI boundary while letting system
    exceptions propagate naturally.

    Attributes:
        message: Human-readable error message describing what went wrong.

    Example:
        ```python
        try:
            await manager.restore_snapshot(snapshot)
        except TidemarkError as e:
            logger.error("restore_failed", error=e.message)
            sys.exit(1)
        ```
    """

    def __init__(self, message: str) -> None:
        """Initialize the TidemarkError.

        Args:
            message: Human-readable error message.
        """
        self.message = message
        super().__init__(message)
