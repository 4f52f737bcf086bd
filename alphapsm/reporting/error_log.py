"""Bounded, append-only error log that is reported once after a file has been processed."""

import logging

logger = logging.getLogger()

TRUNCATION_MARKER = "..."


class ErrorLog:
    """Collects recoverable error messages of a single file up to a maximum number of characters.

    Messages are separated by newlines. Once the maximum length is reached, further messages are
    only counted and a truncation marker is shown in place of the dropped messages.

    Parameters
    ----------
    max_length : int, default 4096
        Maximum number of characters kept in the log.
    """

    def __init__(self, max_length: int = 4096):
        self.max_length = max_length
        self._messages: list[str] = []
        self._length = 0
        self.n_errors = 0
        self.truncated = False
        self._truncated_at = 0

    def append(self, message: str, force: bool = False) -> None:
        """Append a message, `force` bypasses the length limit for final status messages."""
        self.n_errors += 1
        added_length = len(message) + (1 if self._messages else 0)

        if not force and (
            self.truncated or self._length + added_length > self.max_length
        ):
            if not self.truncated:
                self.truncated = True
                self._truncated_at = len(self._messages)
            return

        self._messages.append(message)
        self._length += added_length

    @property
    def messages(self) -> list[str]:
        return list(self._messages)

    def __len__(self):
        return self.n_errors

    def __bool__(self):
        return self.n_errors > 0

    def __str__(self):
        if not self.truncated:
            return "\n".join(self._messages)

        return "\n".join(
            self._messages[: self._truncated_at]
            + [TRUNCATION_MARKER]
            + self._messages[self._truncated_at :]
        )

    def report(self, file_name: str) -> None:
        """Log a summary of the collected errors."""
        if not self:
            return

        logger.warning(
            f"{self.n_errors} error(s) while processing {file_name}, showing {len(self._messages)}:"
        )
        for message in self._messages:
            logger.warning(f"  {message}")
