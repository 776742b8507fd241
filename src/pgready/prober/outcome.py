from enum import IntEnum
from typing import Union
from ..domain.models import ProbeResult, ProbeStatus


class ExitCode(IntEnum):
    OK = 0
    CONNECTION_FAILED = 1
    CHECKS_FAILED = 2
    BAD_ARGS = 3
    INTERNAL_ERROR = 4


# Deadline expiry without classification keeps the historic code 1.
_EXIT_CODES = {
    ProbeStatus.READY: ExitCode.OK,
    ProbeStatus.CONNECTION_FAILED: ExitCode.CONNECTION_FAILED,
    ProbeStatus.CHECKS_FAILED: ExitCode.CHECKS_FAILED,
    ProbeStatus.TIMEOUT: ExitCode.CONNECTION_FAILED,
    ProbeStatus.BAD_ARGS: ExitCode.BAD_ARGS,
    ProbeStatus.INTERNAL_ERROR: ExitCode.INTERNAL_ERROR,
}


def exit_code_for(outcome: Union[ProbeResult, ProbeStatus]) -> ExitCode:
    """Map a probe result (or bare status) to the process exit code."""
    status = outcome.status if isinstance(outcome, ProbeResult) else ProbeStatus(outcome)
    return _EXIT_CODES[status]
