"""Unit tests for context_compactor.utils.serializer module."""

import pytest
from pydantic import BaseModel

from context_compactor.utils.serializer import json_serialize, safe_serialize


class SerializerTestModel(BaseModel):
    """Model used as a tool input."""

    query: str
    limit: int


class TestJsonSerialize:
    """Tests for json_serialize function."""

    def test_dict(self):
        assert json_serialize({"q": "weather"}) == '{"q":"weather"}'

    def test_non_ascii_is_kept(self):
        assert json_serialize({"city": "Zürich"}) == '{"city":"Zürich"}'

    def test_pydantic_model(self):
        model = SerializerTestModel(query="paris", limit=3)
        assert json_serialize(model) == '{"query":"paris","limit":3}'

    def test_unserializable_raises_type_error(self):
        with pytest.raises(TypeError, match="not JSON serializable"):
            json_serialize({"fn": object()})


class TestSafeSerialize:
    """Tests for safe_serialize function."""

    def test_none_is_empty(self):
        assert safe_serialize(None) == ""

    def test_unserializable_is_empty(self):
        assert safe_serialize({1, 2, 3}) == ""

    def test_serializable_value(self):
        assert safe_serialize(["a", 1]) == '["a",1]'
