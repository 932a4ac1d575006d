"""Unit tests for the dependency collector stack."""

import pytest

from statecore import MutableAttribute, ReactiveRuntime


@pytest.mark.unit
@pytest.mark.runtime
def test_run_with_collector_reports_every_read_attribute():
    """Attributes read inside run_with_collector are handed to the register callback"""
    # Arrange
    runtime = ReactiveRuntime()
    a = MutableAttribute("a", runtime, 1)
    b = MutableAttribute("b", runtime, 2)
    seen = []

    # Act
    result = runtime.deps.run_with_collector(seen.append, lambda: a.get() + b.get())

    # Assert
    assert result == 3
    assert seen == [a, b]


@pytest.mark.unit
@pytest.mark.runtime
def test_nested_collectors_register_with_the_innermost_only():
    """A read inside a nested collector is not reported to the outer one"""
    # Arrange
    runtime = ReactiveRuntime()
    a = MutableAttribute("a", runtime, 1)
    b = MutableAttribute("b", runtime, 2)
    outer, inner = [], []

    def body():
        a.get()
        runtime.deps.run_with_collector(inner.append, b.get)

    # Act
    runtime.deps.run_with_collector(outer.append, body)

    # Assert
    assert outer == [a]
    assert inner == [b]


@pytest.mark.unit
@pytest.mark.runtime
def test_untracked_hides_reads_from_the_enclosing_collector():
    """Reads performed through untracked() are not collected"""
    # Arrange
    runtime = ReactiveRuntime()
    a = MutableAttribute("a", runtime, 1)
    seen = []

    # Act
    value = runtime.deps.run_with_collector(seen.append, lambda: runtime.deps.untracked(a.get))

    # Assert
    assert value == 1
    assert seen == []


@pytest.mark.unit
@pytest.mark.runtime
def test_collector_stack_is_popped_when_the_body_raises():
    """The collector is removed from the stack even if the body raises"""
    # Arrange
    runtime = ReactiveRuntime()

    def boom():
        raise ValueError("boom")

    # Act
    with pytest.raises(ValueError):
        runtime.deps.run_with_collector(lambda attr: None, boom)

    # Assert
    assert runtime.deps.depth == 0
    assert runtime.deps.active is None


@pytest.mark.unit
@pytest.mark.runtime
def test_collect_without_active_collector_is_a_no_op():
    """Reading outside any collector does not fail"""
    # Arrange
    runtime = ReactiveRuntime()
    a = MutableAttribute("a", runtime, 5)

    # Act & Assert
    assert a.get() == 5
    assert runtime.deps.depth == 0
