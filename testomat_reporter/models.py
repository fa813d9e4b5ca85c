"""Data models for the Testomat.io reporter."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class TestStatus(Enum):
    """Status of a test as understood by the reporting service."""

    __test__ = False

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


class TestOutcome(Enum):
    """How the test framework finished a test, before mapping to a status."""

    __test__ = False

    SUCCESS = "success"
    FAILURE = "failure"
    ABORTED = "aborted"
    DISABLED = "disabled"


@dataclass(frozen=True)
class TestMetadata:
    """Reporting metadata attached to a test definition."""

    __test__ = False

    title: Optional[str] = None
    test_id: Optional[str] = None


@dataclass(frozen=True)
class TestEvent:
    """One finished test as observed by the framework adapter."""

    __test__ = False

    name: str
    suite_title: str
    file: str
    outcome: TestOutcome
    metadata: TestMetadata = field(default_factory=TestMetadata)
    message: Optional[str] = None
    stack: Optional[str] = None


@dataclass(frozen=True)
class TestReport:
    """Per-test payload sent to the reporting service."""

    __test__ = False

    title: str
    suite_title: str
    file: str
    status: TestStatus
    test_id: Optional[str] = None
    message: Optional[str] = None
    stack: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire format, omitting absent optional fields."""
        data: dict[str, Any] = {"title": self.title}
        if self.test_id is not None:
            data["test_id"] = self.test_id
        data["suite_title"] = self.suite_title
        data["file"] = self.file
        data["status"] = self.status.value
        if self.message is not None:
            data["message"] = self.message
        if self.stack is not None:
            data["stack"] = self.stack
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TestReport":
        """Parse a wire-format dictionary back into a TestReport."""
        return cls(
            title=data["title"],
            suite_title=data["suite_title"],
            file=data["file"],
            status=TestStatus(data["status"]),
            test_id=data.get("test_id"),
            message=data.get("message"),
            stack=data.get("stack"),
        )


@dataclass(frozen=True)
class RunInfo:
    """An active run on the reporting service.

    ``owned`` is False when the run was created elsewhere (TESTOMATIO_RUN)
    and must not be finished by this process.
    """

    uid: str
    title: str
    start_time_ms: int
    owned: bool = True
