"""Unit tests for self-rewiring path attributes."""

import pytest

from statecore import Map, PathAttribute, PathResolutionError, PathResolver, State


@pytest.fixture
def app():
    """Provide a State with a nested user."""
    return State({"user": {"address": {"city": "Milan"}}})


@pytest.mark.unit
@pytest.mark.paths
def test_path_attribute_reads_and_writes_the_leaf(app):
    """get() and set() go through the resolved final attribute"""
    # Arrange
    path = app.attribute("user.address.city")

    # Act
    path.set("Rome")

    # Assert
    assert isinstance(path, PathAttribute)
    assert path.get() == "Rome"
    assert app.user.address.city == "Rome"


@pytest.mark.unit
@pytest.mark.paths
def test_path_is_wired_only_while_it_has_subscribers(app):
    """Subscriptions on links exist between the first subscribe and the last unsubscribe"""
    # Arrange
    path = app.attribute("user.address.city")
    user_attr = app.attribute("user")
    assert not path.wired

    # Act
    off = path.subscribe(lambda v: None)
    wired_count = user_attr.subscriber_count
    off()

    # Assert
    assert wired_count == 1
    assert not path.wired
    assert user_attr.subscriber_count == 0


@pytest.mark.unit
@pytest.mark.paths
def test_leaf_change_is_delivered(app, recorder):
    """A write to the leaf notifies path subscribers"""
    # Arrange
    app.on("user.address.city", recorder, immediate=False)

    # Act
    app.user.address.city = "Turin"

    # Assert
    assert recorder == ["Turin"]


@pytest.mark.unit
@pytest.mark.paths
def test_replacing_an_intermediate_rewires_and_emits(app, recorder):
    """Replacing a link re-resolves the path and delivers the new leaf value"""
    # Arrange
    app.on("user.address.city", recorder, immediate=False)

    # Act
    app.user = {"address": {"city": "Paris"}}
    app.user.address.city = "Lyon"

    # Assert
    assert recorder == ["Paris", "Lyon"]


@pytest.mark.unit
@pytest.mark.paths
def test_subscribe_to_unresolvable_path_raises(app):
    """Resolution errors surface when subscribing"""
    # Arrange
    path = app.attribute("user.nope")

    # Act & Assert
    with pytest.raises(PathResolutionError):
        path.subscribe(lambda v: None)
    assert path.subscriber_count == 0


@pytest.mark.unit
@pytest.mark.paths
def test_index_path_emits_once_per_list_change(recorder):
    """A terminal index path emits once per structural change of its list"""
    # Arrange
    state = State({"items": ["a", "b"]})
    state.on("items[0]", recorder, immediate=False)

    # Act
    state.items.unshift("z")
    state.items.set(0, "y")

    # Assert
    assert recorder == ["z", "y"]


@pytest.mark.unit
@pytest.mark.paths
def test_index_path_rewires_when_list_is_replaced_through_a_link(recorder):
    """Replacing the container holding the list re-targets the index path and delivers its element"""
    # Arrange
    state = State({"box": {"items": [1, 2]}})
    state.on("box.items[1]", recorder, immediate=False)

    # Act
    state.box = {"items": [7, 8]}
    state.box.items.set(1, 9)

    # Assert
    assert recorder == [8, 9]
    assert state.get("box.items[1]") == 9


@pytest.mark.unit
@pytest.mark.paths
def test_map_key_path_tracks_entry(recorder):
    """A terminal map-key path follows the entry"""
    # Arrange
    state = State({"prefs": Map()})
    state.on('prefs["theme"]', recorder)

    # Act
    state.prefs.set("theme", "dark")
    state.set('prefs["theme"]', "light")

    # Assert
    assert recorder == [None, "dark", "light"]


@pytest.mark.unit
@pytest.mark.paths
def test_index_path_follows_replacement_of_an_upstream_container(recorder):
    """Replacing the State that holds the list delivers the new element, later list writes once"""
    # Arrange
    state = State({"user": {"tags": ["a"]}})
    state.on("user.tags[0]", recorder, immediate=False)

    # Act
    state.user = {"tags": ["b"]}
    state.user.tags.set(0, "c")

    # Assert
    assert recorder == ["b", "c"]


@pytest.mark.unit
@pytest.mark.paths
def test_is_writable_leaves_no_watcher_on_the_collection():
    """Classifying an index path does not keep a subscription on its list"""
    # Arrange
    state = State({"items": [1, 2], "prefs": Map({"theme": "dark"})})
    items_attr = state.attribute("items")
    prefs_attr = state.attribute("prefs")

    # Act
    for _ in range(10):
        state.attribute("items[0]").is_writable()
        state.attribute('prefs["theme"]').is_writable()

    # Assert
    assert items_attr.subscriber_count == 0
    assert prefs_attr.subscriber_count == 0


@pytest.mark.unit
@pytest.mark.paths
def test_resolving_through_an_index_path_alias_leaves_no_watcher():
    """A path walking through an alias of an index path releases the element binding"""
    # Arrange
    state = State({"items": [[1]], "first": "{items[0]}"})
    items_attr = state.attribute("items")
    baseline = items_attr.subscriber_count

    # Act
    for _ in range(5):
        PathResolver.preflight(state, "first[0]")

    # Assert
    assert items_attr.subscriber_count == baseline


@pytest.mark.unit
@pytest.mark.paths
def test_path_recovers_after_being_briefly_unresolvable(recorder):
    """A path whose list was emptied wires itself again once an element is back"""
    # Arrange
    state = State({"items": [{"name": "x"}]})
    state.on("items[0].name", recorder, immediate=False)

    # Act
    state.items.pop()
    state.items.push({"name": "y"})
    state.items.at(0).name = "z"

    # Assert
    assert recorder == ["y", "z"]
