"""Unit tests for buffered and delayed subscriptions."""

import pytest

from statecore import State


@pytest.mark.unit
@pytest.mark.runtime
def test_delay_defers_every_delivery(runtime, scheduler, recorder):
    """delay=N schedules each delivery, including the immediate one, N ms later"""
    # Arrange
    state = State({"count": 0}, runtime=runtime)
    state.on("count", recorder, delay=50)

    # Act
    state.count = 1
    assert recorder == []
    scheduler.advance(50)

    # Assert
    assert recorder == [0, 1]


@pytest.mark.unit
@pytest.mark.runtime
def test_buffer_debounces_to_the_latest_value(runtime, scheduler, recorder):
    """buffer=N delivers only the latest value once N ms pass without changes"""
    # Arrange
    state = State({"query": ""}, runtime=runtime)
    state.on("query", recorder, immediate=False, buffer=100)

    # Act
    state.query = "a"
    scheduler.advance(60)
    state.query = "ab"
    scheduler.advance(60)
    state.query = "abc"
    scheduler.advance(100)

    # Assert
    assert recorder == ["abc"]


@pytest.mark.unit
@pytest.mark.runtime
def test_buffer_also_applies_to_the_immediate_value(runtime, scheduler, recorder):
    """The immediate push goes through the debounce window too"""
    # Arrange
    state = State({"query": "x"}, runtime=runtime)

    # Act
    state.on("query", recorder, buffer=20)
    state.query = "y"
    scheduler.advance(20)

    # Assert
    assert recorder == ["y"]


@pytest.mark.unit
@pytest.mark.runtime
def test_unsubscribe_cancels_pending_deliveries(runtime, scheduler, recorder):
    """Pending timers are cancelled when the subscription is removed"""
    # Arrange
    state = State({"count": 0}, runtime=runtime)
    off = state.on("count", recorder, immediate=False, delay=10)
    state.count = 1

    # Act
    off()
    scheduler.advance(10)

    # Assert
    assert recorder == []
    assert scheduler.pending == 0


@pytest.mark.unit
@pytest.mark.runtime
def test_buffer_and_delay_combine(runtime, scheduler, recorder):
    """A debounced value is delivered after the additional delay"""
    # Arrange
    state = State({"n": 0}, runtime=runtime)
    state.on("n", recorder, immediate=False, buffer=10, delay=5)

    # Act
    state.n = 1
    scheduler.advance(10)
    assert recorder == []
    scheduler.advance(5)

    # Assert
    assert recorder == [1]
