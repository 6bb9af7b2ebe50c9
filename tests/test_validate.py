import re

import pytest

from xray_crawler.custom_types import TypeRegistry
from xray_crawler.errors import ConfigurationError
from xray_crawler.node import Xray
from xray_crawler.validate import (
    assert_valid_type, get_type_name, is_valid_type, validate_type,
)


class TestTypeNames:
    """Test suite for schema type names."""

    @pytest.mark.parametrize("value, expected", [
        ("h1", "string"),
        (None, "null"),
        (lambda context: None, "function"),
        (re.compile(r"\d+"), "regexp"),
        (["li"], "array-string"),
        ([{"a": "b"}], "array-object"),
        ([["li"]], "array-array"),
        ({"a": "b"}, "object"),
        (3, "int"),
    ])
    def test_get_type_name(self, value, expected):
        assert get_type_name(value) == expected

    def test_node_is_a_function(self):
        x = Xray()
        assert get_type_name(x("ul", ["li"])) == "function"

    def test_custom_type(self):
        types = TypeRegistry()
        types.register("money", lambda *args: None, lambda value: isinstance(value, tuple))
        assert get_type_name(("price", "EUR"), types) == "custom:money"
        assert is_valid_type({"price": ("price", "EUR")}, types)


class TestValidation:
    """Test suite for schema validation."""

    def test_valid_schema(self):
        result = validate_type({
            "title": "h1",
            "items": [{"name": ".name", "tags": ["li"]}],
            "optional": None,
        })
        assert result.valid
        assert result.error is None

    def test_empty_array(self):
        result = validate_type({"items": []})
        assert not result.valid
        assert result.path == "selector.items"
        assert result.error.startswith('Empty array selector at "selector.items"')

    def test_invalid_array(self):
        result = validate_type([1])
        assert not result.valid
        assert result.type == "array"
        assert "Invalid array selector" in result.error

    def test_empty_object(self):
        result = validate_type({"meta": {}})
        assert not result.valid
        assert result.type == "object"
        assert "Empty object selector" in result.error

    def test_nested_path(self):
        result = validate_type({"items": [{"price": 1.5}]})
        assert result.path == "selector.items[0].price"
        assert result.type == "float"
        assert 'Unsupported selector type at "selector.items[0].price"' in result.error

    def test_is_valid_type(self):
        assert is_valid_type("h1")
        assert not is_valid_type(True)

    def test_assert_valid_type(self):
        assert_valid_type({"title": "h1"})
        with pytest.raises(ConfigurationError) as excinfo:
            assert_valid_type({"bad": object()})
        assert excinfo.value.path == "selector.bad"
        assert excinfo.value.received_type == "object"
        assert isinstance(excinfo.value, TypeError)
