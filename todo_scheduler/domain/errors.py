from __future__ import annotations


class SchedulerError(Exception):
    """Base class for every validation outcome the scheduler reports to a caller."""


class RuleError(SchedulerError):
    """A recurrence rule could not be parsed.

    ``token`` is the offending piece of input and ``expected`` names the
    domain it should have come from, so a failure can be reproduced verbatim.
    """

    def __init__(self, message: str, token: str = "", expected: str = "") -> None:
        super().__init__(message)
        self.token = token
        self.expected = expected


class EmptyRule(RuleError):
    def __init__(self, token: str = "") -> None:
        super().__init__("repeat rule is empty", token, "one of: y, d, w, m")


class MalformedRule(RuleError):
    def __init__(self, token: str, expected: str) -> None:
        super().__init__(f"malformed repeat rule {token!r}: expected {expected}", token, expected)


class OutOfRange(RuleError):
    def __init__(self, token: str, expected: str) -> None:
        super().__init__(f"value {token!r} is out of range: expected {expected}", token, expected)


class UnknownRuleKind(RuleError):
    def __init__(self, token: str) -> None:
        super().__init__(f"unknown repeat rule {token!r}", token, "one of: y, d, w, m")


class InvalidDate(SchedulerError):
    def __init__(self, value: str, expected: str = "YYYYMMDD") -> None:
        super().__init__(f"invalid date {value!r}: expected {expected}")
        self.value = value
        self.expected = expected


class InvalidTask(SchedulerError):
    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field


class TaskNotFound(SchedulerError):
    def __init__(self, task_id: int) -> None:
        super().__init__(f"task {task_id} not found")
        self.task_id = task_id


class TaskConflict(SchedulerError):
    def __init__(self, task_id: int) -> None:
        super().__init__(f"task {task_id} was changed by another request")
        self.task_id = task_id
