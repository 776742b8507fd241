from .checker import TableExistenceChecker
from .deadline import Deadline
from .engine import Prober
from .outcome import ExitCode, exit_code_for

__all__ = ["Deadline", "ExitCode", "Prober", "TableExistenceChecker", "exit_code_for"]
