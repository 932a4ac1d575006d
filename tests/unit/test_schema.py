"""Unit tests for JSON Schema validation of States."""

import pytest

from statecore import JsonSchemaHandle, SchemaValidationError, State

PERSON_SCHEMA = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "age": {"type": "integer", "minimum": 0},
        "role": {"type": "string", "default": "guest"},
        "profile": {
            "type": "object",
            "properties": {
                "theme": {"type": "string", "default": "dark"},
                "zip": {"type": "integer"},
            },
        },
    },
}


@pytest.mark.unit
@pytest.mark.schema
def test_handle_normalize_fills_defaults_without_mutating_input():
    """normalize() returns a copy with schema defaults applied"""
    # Arrange
    handle = JsonSchemaHandle(PERSON_SCHEMA)
    value = {"name": "Ada", "profile": {}}

    # Act
    result = handle.normalize(value, "")

    # Assert
    assert result == {"name": "Ada", "role": "guest", "profile": {"theme": "dark"}}
    assert value == {"name": "Ada", "profile": {}}


@pytest.mark.unit
@pytest.mark.schema
def test_handle_reports_grouped_issues_and_returns_original_value():
    """Invalid values are returned unchanged and issues are grouped per path"""
    # Arrange
    reports = []
    handle = JsonSchemaHandle(PERSON_SCHEMA, on_error=lambda ctx, issues: reports.append((ctx, issues)))
    value = {"age": -1, "profile": {"zip": "x"}}

    # Act
    result = handle.normalize(value, "")

    # Assert
    assert result is value
    by_path = {ctx: issues for ctx, issues in reports}
    assert by_path["age"][0].keyword == "minimum"
    assert by_path["profile.zip"][0].keyword == "type"
    assert by_path["profile.zip"][0].path == "profile.zip"


@pytest.mark.unit
@pytest.mark.schema
def test_handle_reports_valid_outcome_as_none():
    """A valid value reports None for its context"""
    # Arrange
    reports = []
    handle = JsonSchemaHandle({"type": "integer"}, on_error=lambda ctx, issues: reports.append((ctx, issues)))

    # Act
    handle.normalize(3, "count")

    # Assert
    assert reports == [("count", None)]


@pytest.mark.unit
@pytest.mark.schema
def test_required_and_additional_properties_point_at_the_property():
    """required/additionalProperties issues are attributed to the property path"""
    # Arrange
    schema = {
        "type": "object",
        "properties": {"name": {"type": "string"}},
        "required": ["name"],
        "additionalProperties": False,
    }
    handle = JsonSchemaHandle(schema)

    # Act
    issues = handle.issues({"extra": 1})

    # Assert
    paths = {issue.keyword: issue.path for issue in issues}
    assert paths["required"] == "name"
    assert paths["additionalProperties"] == "extra"


@pytest.mark.unit
@pytest.mark.schema
def test_handle_mirrors_properties_and_items():
    """child() and items() expose nested schema fragments"""
    # Arrange
    handle = JsonSchemaHandle(
        {"type": "object", "properties": {"tags": {"type": "array", "items": {"type": "string"}}}}
    )

    # Act
    tags = handle.child("tags")

    # Assert
    assert tags is not None
    assert tags.items().issues(3)[0].keyword == "type"
    assert handle.child("missing") is None


@pytest.mark.unit
@pytest.mark.schema
def test_state_applies_schema_defaults():
    """Missing keys are filled from schema defaults, nested ones included"""
    # Arrange & Act
    state = State({"name": "Ada", "profile": {"zip": 1}}, schema=PERSON_SCHEMA)

    # Assert
    assert state.role == "guest"
    assert state.profile.theme == "dark"
    assert state.profile.zip == 1


@pytest.mark.unit
@pytest.mark.schema
def test_invalid_write_is_stored_and_reported():
    """Schema problems do not block the write and are exposed per path"""
    # Arrange
    state = State({"age": 30}, schema=PERSON_SCHEMA)
    events = []
    state.on_validation_change(events.append)

    # Act
    state.age = -1

    # Assert
    assert state.age == -1
    assert state.schema_errors("age")[0].keyword == "minimum"
    assert len(events) == 1
    assert events[0].valid is False
    assert events[0].target is state
    assert events[0].errors[0].key == "age"


@pytest.mark.unit
@pytest.mark.schema
def test_identical_error_sets_are_not_reported_twice():
    """Repeating the same invalid write does not re-fire listeners"""
    # Arrange
    state = State({"age": 30, "name": "Ada"}, schema=PERSON_SCHEMA)
    events = []
    state.on_validation_change(events.append)

    # Act
    state.age = -1
    state.age = -1
    state.name = 5
    state.name = 6

    # Assert
    assert len(events) == 3


@pytest.mark.unit
@pytest.mark.schema
def test_fixing_a_value_clears_its_errors():
    """A valid write removes the path's issues and emits a valid event"""
    # Arrange
    state = State({"age": -1}, schema=PERSON_SCHEMA)
    events = []
    state.on_validation_change(events.append)

    # Act
    state.age = 4

    # Assert
    assert state.schema_errors("age") is None
    assert state.all_schema_errors() == []
    assert events[-1].valid is True


@pytest.mark.unit
@pytest.mark.schema
def test_initial_payload_errors_are_recorded():
    """Errors found while building the State are available right away"""
    # Arrange & Act
    state = State({"age": "old"}, schema=PERSON_SCHEMA)

    # Assert
    entries = state.all_schema_errors()
    assert [(e.path, e.key) for e in entries] == [("age", "age")]
    assert [i.keyword for i in state.schema_errors()] == ["type"]
    assert not state.valid


@pytest.mark.unit
@pytest.mark.schema
def test_custom_validators_report_messages():
    """Custom validators add 'custom' issues for their key"""
    # Arrange
    state = State(
        {"age": 150},
        validators={"age": lambda value, s: "too old" if value > 120 else None},
    )
    assert state.schema_errors("age")[0].message == "too old"

    # Act
    state.age = 30

    # Assert
    assert state.schema_errors("age") is None


@pytest.mark.unit
@pytest.mark.schema
def test_validate_on_write_rejects_invalid_values():
    """With hard validation an invalid write raises and leaves the value unchanged"""
    # Arrange
    state = State({"age": 1}, schema=PERSON_SCHEMA, validate_on_write=True)

    # Act & Assert
    with pytest.raises(SchemaValidationError, match="age failed schema validation"):
        state.age = -5
    assert state.age == 1


@pytest.mark.unit
@pytest.mark.schema
def test_validate_on_write_includes_custom_validators():
    """Hard validation also rejects custom validator failures"""
    # Arrange
    state = State(
        {"name": "Ada"},
        validators={"name": lambda v, s: None if v else "required"},
        validate_on_write=True,
    )

    # Act & Assert
    with pytest.raises(SchemaValidationError) as info:
        state.name = ""
    assert info.value.errors[0].keyword == "custom"
    assert state.name == "Ada"


@pytest.mark.unit
@pytest.mark.schema
def test_validation_changes_cascade_to_children():
    """Children receive their ancestor's validation changes"""
    # Arrange
    parent = State({"age": 3}, schema=PERSON_SCHEMA)
    child = State({"nick": "a"}, parent=parent)
    events = []
    child.on_validation_change(events.append)

    # Act
    parent.age = -3

    # Assert
    assert child.schema_errors("age") is not None
    assert events[0].target is child


@pytest.mark.unit
@pytest.mark.schema
def test_nested_state_validates_with_its_schema_fragment():
    """A nested container reports problems of its own keys"""
    # Arrange
    state = State({"profile": {"zip": "x"}}, schema=PERSON_SCHEMA)
    assert state.profile.schema_errors("zip") is not None

    # Act
    state.profile.zip = 20100

    # Assert
    assert state.profile.schema_errors("zip") is None


@pytest.mark.unit
@pytest.mark.schema
def test_list_elements_use_the_items_schema():
    """Dict elements pushed into a list get the items schema"""
    # Arrange
    schema = {
        "type": "object",
        "properties": {
            "users": {
                "type": "array",
                "items": {"type": "object", "properties": {"active": {"default": True}}},
            }
        },
    }
    state = State({"users": []}, schema=schema)

    # Act
    state.users.push({"name": "Ada"})

    # Assert
    assert state.users.at(0).active is True
