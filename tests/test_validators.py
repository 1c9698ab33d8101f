import pytest

from apicurio_sync.validators import (
    format_validation_error,
    validate_coordinate_part,
    validate_local_path,
)


def test_format_validation_error():
    assert format_validation_error("Group", "cannot be empty") == "Group cannot be empty"


# validate_coordinate_part
def test_valid_coordinate():
    assert validate_coordinate_part("com.example.orders") == (True, "")


@pytest.mark.parametrize("value", ["", "   "])
def test_empty_coordinate(value):
    is_valid, message = validate_coordinate_part(value, "Group")
    assert not is_valid
    assert message == "Group cannot be empty"


def test_coordinate_with_surrounding_whitespace():
    is_valid, message = validate_coordinate_part(" orders ")
    assert not is_valid
    assert "leading or trailing whitespace" in message


def test_coordinate_too_long():
    is_valid, message = validate_coordinate_part("a" * 513)
    assert not is_valid
    assert "512" in message


def test_coordinate_at_limit():
    assert validate_coordinate_part("a" * 512)[0]


# validate_local_path
@pytest.mark.parametrize(
    "path", ["schemas/a.avsc", "a.json", "nested/dir/api.yaml", "./x.proto"]
)
def test_valid_paths(path):
    assert validate_local_path(path) == (True, "")


def test_empty_path():
    assert validate_local_path("") == (False, "Path cannot be empty")


def test_absolute_path():
    is_valid, message = validate_local_path("/etc/passwd")
    assert not is_valid
    assert "relative" in message


@pytest.mark.parametrize("path", ["../x.avsc", "schemas/../../x.avsc"])
def test_parent_segments(path):
    is_valid, message = validate_local_path(path)
    assert not is_valid
    assert "'..'" in message
