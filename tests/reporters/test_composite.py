"""Tests for CompositeReporter."""

from unittest.mock import Mock, call

from testomat_reporter.models import TestEvent, TestOutcome
from testomat_reporter.reporters.base import CompositeReporter, Reporter


class TestCompositeReporter:
    """CompositeReporter fans every call out in order."""

    def test_delegates_to_all_reporters(self):
        manager = Mock()
        first = Mock(spec=Reporter)
        second = Mock(spec=Reporter)
        manager.attach_mock(first, "first")
        manager.attach_mock(second, "second")
        event = TestEvent(
            name="test_addition",
            suite_title="TestMath",
            file="tests/test_math.py",
            outcome=TestOutcome.SUCCESS,
        )
        composite = CompositeReporter([first, second])

        composite.on_suite_start("Run1")
        composite.on_test_event(event)
        composite.on_suite_end()

        assert manager.mock_calls == [
            call.first.on_suite_start("Run1"),
            call.second.on_suite_start("Run1"),
            call.first.on_test_event(event),
            call.second.on_test_event(event),
            call.first.on_suite_end(),
            call.second.on_suite_end(),
        ]

    def test_reporters_is_a_copy(self):
        reporter = Mock(spec=Reporter)
        composite = CompositeReporter([reporter])

        composite.reporters.append(Mock(spec=Reporter))

        assert composite.reporters == [reporter]
