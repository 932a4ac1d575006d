"""Unit tests for nested containers."""

import pytest

from statecore import Map, ReactiveMap, State, StateTypeError


@pytest.mark.unit
@pytest.mark.attributes
def test_dict_fields_become_child_states_with_owner_as_parent():
    """A plain dict field is wrapped into a State whose parent is the owner"""
    # Arrange & Act
    state = State({"user": {"name": "Ada"}})

    # Assert
    assert isinstance(state.user, State)
    assert state.user.parent is state
    assert state.user.runtime is state.runtime


@pytest.mark.unit
@pytest.mark.attributes
def test_map_fields_become_reactive_maps():
    """A Map-tagged field becomes an associative collection, not a container"""
    # Arrange & Act
    state = State({"prefs": Map({"theme": "dark"})})

    # Assert
    assert isinstance(state.prefs, ReactiveMap)
    assert state.prefs.get("theme") == "dark"


@pytest.mark.unit
@pytest.mark.attributes
def test_child_state_sees_owner_keys():
    """Keys of the owner are visible from the nested container"""
    # Arrange
    state = State({"locale": "it", "user": {"name": "Ada"}})

    # Act & Assert
    assert state.user.locale == "it"


@pytest.mark.unit
@pytest.mark.attributes
def test_replacing_nested_with_dict_builds_a_new_child(recorder):
    """Assigning a dict rebuilds the child and disposes the previous one"""
    # Arrange
    state = State({"user": {"name": "Ada"}})
    previous = state.user
    state.on("user", recorder, immediate=False)

    # Act
    state.user = {"name": "Alan"}

    # Assert
    assert state.user is not previous
    assert state.user.name == "Alan"
    assert previous.disposed
    assert recorder == [state.user]


@pytest.mark.unit
@pytest.mark.attributes
def test_assigning_an_existing_state_adopts_it():
    """An existing State is stored as is and not disposed when replaced later"""
    # Arrange
    state = State({"user": {"name": "Ada"}})
    external = State({"name": "Grace"}, runtime=state.runtime)

    # Act
    state.user = external
    state.user = {"name": "Alan"}

    # Assert
    assert not external.disposed
    assert state.user.name == "Alan"


@pytest.mark.unit
@pytest.mark.attributes
def test_assigning_a_scalar_to_a_nested_key_fails():
    """Nested keys only accept mappings or States"""
    # Arrange
    state = State({"user": {"name": "Ada"}})

    # Act & Assert
    with pytest.raises(StateTypeError):
        state.user = 5


@pytest.mark.unit
@pytest.mark.attributes
def test_reassigning_the_same_child_does_not_notify(recorder):
    """Writing the current child State again is a no-op"""
    # Arrange
    state = State({"user": {"name": "Ada"}})
    state.on("user", recorder, immediate=False)

    # Act
    state.user = state.user

    # Assert
    assert recorder == []
