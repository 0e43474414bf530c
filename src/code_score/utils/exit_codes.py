"""Process exit status of the ``code-score`` commands.

``score``      VIOLATION only when ``--min-grade`` is given and the grade is lower.
``validate``   VIOLATION when the file parses but does not match the result schema.
``accept`` and ``categories`` never return VIOLATION.

Every command returns ERROR for a missing project path, an unreadable
file or an invalid ``.code-score.yaml``.
"""

from __future__ import annotations

from enum import IntEnum


class ExitCode(IntEnum):
    SUCCESS = 0
    VIOLATION = 1  # grade gate or schema mismatch
    ERROR = 2  # could not score or read input
