import pytest
from pgready.domain.models import ProbeResult, ProbeStatus
from pgready.prober.outcome import ExitCode, exit_code_for


@pytest.mark.parametrize(
    "status, code",
    [
        (ProbeStatus.READY, 0),
        (ProbeStatus.CONNECTION_FAILED, 1),
        (ProbeStatus.CHECKS_FAILED, 2),
        (ProbeStatus.TIMEOUT, 1),
        (ProbeStatus.BAD_ARGS, 3),
        (ProbeStatus.INTERNAL_ERROR, 4),
    ],
)
def test_exit_codes(status, code):
    assert exit_code_for(status) == code
    assert exit_code_for(ProbeResult(status=status)) == code


def test_mapping_is_total():
    for status in ProbeStatus:
        assert isinstance(exit_code_for(status), ExitCode)


def test_mapping_is_idempotent():
    result = ProbeResult(status=ProbeStatus.CHECKS_FAILED, elapsed=3.2, last_error=RuntimeError("x"))

    assert exit_code_for(result) == exit_code_for(result) == ExitCode.CHECKS_FAILED
    assert result.status == ProbeStatus.CHECKS_FAILED


def test_result_is_immutable():
    result = ProbeResult(status=ProbeStatus.READY)

    with pytest.raises(Exception):
        result.status = ProbeStatus.TIMEOUT
