"""Exit-code contract for the command-line entry point.

Code  Meaning
----  -------
  0   Success — conversion finished (or nothing left to change under --check)
  1   Violation — --check found files that a conversion would still rewrite
  2   Error — missing source root, parse failure, emission failure, bad config
"""

from __future__ import annotations

from enum import IntEnum


class ExitCode(IntEnum):
    SUCCESS = 0
    VIOLATION = 1
    ERROR = 2
