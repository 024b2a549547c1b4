import pytest
from pydantic import BaseModel

from baton.output import OutputSchema, resolve_output_schema
from baton.types.exceptions import ModelBehaviorError, UserError


class Weather(BaseModel):
    city: str
    temperature: int


def test_resolve_output_schema():
    assert resolve_output_schema(None) is None
    assert resolve_output_schema(str) is None
    assert resolve_output_schema(OutputSchema(str)) is None

    schema = OutputSchema(Weather)
    assert resolve_output_schema(schema) is schema
    assert resolve_output_schema(Weather).output_type is Weather


def test_plain_text():
    schema = OutputSchema()

    assert schema.is_plain_text()
    assert schema.validate_json("anything") == "anything"
    with pytest.raises(UserError):
        schema.json_schema


def test_object_type():
    schema = OutputSchema(Weather)

    assert not schema.is_wrapped()
    assert schema.json_schema["properties"].keys() == {"city", "temperature"}
    assert schema.validate_json('{"city": "Paris", "temperature": 18}') == Weather(city="Paris", temperature=18)


def test_wrapped_type():
    schema = OutputSchema(list[str])

    assert schema.is_wrapped()
    assert schema.json_schema["required"] == ["response"]
    assert schema.validate_json('{"response": ["a", "b"]}') == ["a", "b"]


@pytest.mark.parametrize("text", ["not json", '{"city": "Paris"}'])
def test_validate_json_invalid(text):
    with pytest.raises(ModelBehaviorError, match="Invalid JSON when parsing"):
        OutputSchema(Weather).validate_json(text)


def test_dump_and_validate_python():
    schema = OutputSchema(Weather)
    value = Weather(city="Paris", temperature=18)

    data = OutputSchema.dump(value)

    assert data == {"city": "Paris", "temperature": 18}
    assert schema.validate_python(data) == value


def test_validate_python_wrapped():
    schema = OutputSchema(list[int])

    assert schema.validate_python([1, 2]) == [1, 2]
    with pytest.raises(ModelBehaviorError):
        schema.validate_python(["x"])
