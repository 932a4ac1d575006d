"""Unit tests for reactive maps."""

import pytest

from statecore import Map, State, StateTypeError


@pytest.fixture
def prefs():
    """Provide a State holding a map and a recorder of map emissions."""
    state = State({"prefs": Map({"theme": "dark", "lang": "en"})})
    emissions = []
    state.on("prefs", lambda v: emissions.append(v.snapshot()), immediate=False)
    return state, emissions


@pytest.mark.unit
@pytest.mark.collections
def test_map_read_operations(prefs):
    """get/has/keys/values/entries/size reflect the stored entries"""
    # Arrange
    state, _ = prefs
    m = state.prefs

    # Act & Assert
    assert m.get("theme") == "dark"
    assert m.get("missing", "fallback") == "fallback"
    assert m.has("lang") and "lang" in m
    assert list(m.keys()) == ["theme", "lang"]
    assert list(m.values()) == ["dark", "en"]
    assert list(m.entries()) == [("theme", "dark"), ("lang", "en")]
    assert m.size == 2 and len(m) == 2
    assert list(m) == ["theme", "lang"]


@pytest.mark.unit
@pytest.mark.collections
def test_set_emits_only_on_change(prefs):
    """Setting an unchanged value is a no-op; a changed or new key emits once"""
    # Arrange
    state, emissions = prefs

    # Act
    state.prefs.set("theme", "dark")
    state.prefs.set("theme", "light")
    state.prefs["font"] = "mono"

    # Assert
    assert emissions == [
        {"theme": "light", "lang": "en"},
        {"theme": "light", "lang": "en", "font": "mono"},
    ]


@pytest.mark.unit
@pytest.mark.collections
def test_delete_and_clear(prefs):
    """delete() and clear() emit only when something was removed"""
    # Arrange
    state, emissions = prefs

    # Act
    state.prefs.delete("missing").delete("lang")
    state.prefs.clear()
    state.prefs.clear()

    # Assert
    assert emissions == [{"theme": "dark"}, {}]


@pytest.mark.unit
@pytest.mark.collections
def test_del_of_missing_key_raises_key_error(prefs):
    """del view[key] behaves like a dict for missing keys"""
    # Arrange
    state, _ = prefs

    # Act & Assert
    with pytest.raises(KeyError):
        del state.prefs["missing"]


@pytest.mark.unit
@pytest.mark.collections
def test_for_each_visits_value_key_and_map(prefs):
    """for_each() calls fn(value, key, map) per entry"""
    # Arrange
    state, _ = prefs
    seen = []

    # Act
    state.prefs.for_each(lambda v, k, m: seen.append((k, v, m is state.prefs)))

    # Assert
    assert seen == [("theme", "dark", True), ("lang", "en", True)]


@pytest.mark.unit
@pytest.mark.collections
def test_keys_and_size_refs_emit_only_on_actual_change(prefs):
    """keys_ref/size_ref notify when the key list or the size changes"""
    # Arrange
    state, _ = prefs
    keys_seen, sizes_seen = [], []
    state.prefs.keys_ref().subscribe(keys_seen.append, immediate=False)
    state.prefs.size_ref().subscribe(sizes_seen.append, immediate=False)

    # Act
    state.prefs.set("theme", "light")
    state.prefs.set("font", "mono")

    # Assert
    assert keys_seen == [["theme", "lang", "font"]]
    assert sizes_seen == [3]


@pytest.mark.unit
@pytest.mark.collections
def test_keys_and_size_refs_are_cached(prefs):
    """Each map has exactly one keys view and one size view"""
    # Arrange
    state, _ = prefs

    # Act & Assert
    assert state.prefs.keys_ref() is state.prefs.keys_ref()
    assert state.prefs.size_ref() is state.prefs.size_ref()


@pytest.mark.unit
@pytest.mark.collections
def test_structured_map_values_are_wrapped():
    """Dict values become States and list values become ReactiveLists"""
    # Arrange
    state = State({"users": Map()})

    # Act
    state.users.set("ada", {"age": 36}).set("tags", [1, 2])

    # Assert
    assert isinstance(state.users.get("ada"), State)
    assert state.users.get("ada").age == 36
    assert state.users.get("tags").snapshot() == [1, 2]


@pytest.mark.unit
@pytest.mark.collections
def test_replacing_the_map_requires_a_mapping():
    """A map key accepts mappings only"""
    # Arrange
    state = State({"prefs": Map()})

    # Act
    state.prefs = {"a": 1}

    # Assert
    assert state.prefs.snapshot() == {"a": 1}
    with pytest.raises(StateTypeError):
        state.prefs = [1, 2]
