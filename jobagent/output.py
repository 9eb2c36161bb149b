"""
OutputRedactor - drains a live process output stream.

Each line is masked before it reaches any sink. Persistence to a log file is
a best-effort side channel: write failures are logged as warnings and never
stall or abort the live stream.
"""

import logging
import sys
from pathlib import Path
from typing import BinaryIO, Iterable, Optional, TextIO

from jobagent.masking import mask_secret_envs, mask_secrets

logger = logging.getLogger(__name__)


class OutputRedactor:
    """
    Line-oriented redacting pump from a byte stream to a text sink.

    Usage:
        redactor = OutputRedactor(secret_envs=["TOKEN=abc"], log_file=Path("step.log"))
        redactor.drain(process.stdout)
    """

    def __init__(
        self,
        secret_envs: Iterable[str] = (),
        secrets: Iterable[str] = (),
        sink: Optional[TextIO] = None,
        log_file: Optional[Path] = None,
    ):
        """
        Args:
            secret_envs: KEY=VALUE entries whose values are masked
            secrets: Literal secrets masked anywhere they occur
            sink: Live text sink (defaults to sys.stdout at drain time)
            log_file: If set, masked lines are appended to this file
        """
        self._secret_envs = list(secret_envs)
        self._secrets = list(secrets)
        self._sink = sink
        self._log_file = Path(log_file) if log_file is not None else None

    def mask(self, line: str) -> str:
        """Apply both masking modes to one line."""
        return mask_secrets(mask_secret_envs(line, self._secret_envs), self._secrets)

    def drain(self, stream: BinaryIO) -> int:
        """
        Consume the stream until end-of-stream.

        A clean EOF ends the loop normally. Any other read failure ends the
        loop and is logged, not raised.

        Args:
            stream: Binary, line-readable stream (e.g. Popen.stdout)

        Returns:
            Number of lines written to the sink
        """
        sink = self._sink or sys.stdout
        count = 0
        while True:
            try:
                raw = stream.readline()
            except (OSError, ValueError) as e:
                logger.error(f"Failed to read log when processing cmd output: {e}")
                break
            if not raw:
                break

            masked = self.mask(raw.decode("utf-8", errors="replace"))
            sink.write(masked)
            sink.flush()
            count += 1

            if self._log_file is not None:
                self._persist(masked)
        return count

    def _persist(self, line: str) -> None:
        try:
            with open(self._log_file, "a", encoding="utf-8") as f:
                f.write(line)
        except OSError as e:
            logger.warning(f"Failed to write file when processing cmd output: {e}")


def handle_cmd_output(
    stream: BinaryIO,
    secret_envs: Iterable[str],
    log_file: Optional[Path] = None,
    sink: Optional[TextIO] = None,
) -> int:
    """Drain a command's output stream through an OutputRedactor."""
    return OutputRedactor(secret_envs=secret_envs, sink=sink, log_file=log_file).drain(stream)
