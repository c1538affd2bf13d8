from types import SimpleNamespace

import pytest

from models.analysis_result import DEFAULT_DESCRIPTION, MAX_PRICE, AnalysisResult, to_minor_units
from services.openai.response_parser import (
    coerce_price,
    extract_json_object,
    extract_text,
    find_function_arguments,
    map_analysis,
)


def test_map_analysis_fills_every_missing_field_with_defaults():
    result = map_analysis({})

    assert result.title == "Untitled Artwork"
    assert result.medium == "Mixed Media"
    assert result.condition == "Good"
    assert result.suggested_price == 500
    assert result.confidence == 0.7
    assert result.description == DEFAULT_DESCRIPTION
    assert result.artist is None
    assert result.tags() == []


def test_map_analysis_repairs_mistyped_fields():
    result = map_analysis(
        {
            "title": "   ",
            "condition": "Mint",
            "confidence": 4.2,
            "suggestedPrice": -20,
            "style": "Cubism",
            "colors": ["Red", "", None, "Teal"],
            "estimatedYear": True,
        }
    )

    assert result.title == "Untitled Artwork"
    assert result.condition == "Good"
    assert result.confidence == 1.0
    assert result.suggested_price == 500
    assert result.style == []
    assert result.colors == ["Red", "Teal"]
    assert result.estimated_year is None


def test_tags_are_style_then_themes_then_colors():
    result = AnalysisResult(style=["Impressionism"], themes=["Landscape", ""], colors=["Orange", "Blue"])
    assert result.tags() == ["Impressionism", "Landscape", "Orange", "Blue"]


@pytest.mark.parametrize(
    "amount, cents",
    [(150, 15000), (300, 30000), (19.99, 1999), (0.005, 1), (None, 0), (1234.5, 123450)],
)
def test_to_minor_units(amount, cents):
    assert to_minor_units(amount) == cents


def test_coerce_price_rejects_non_numbers():
    assert coerce_price("400") == 500
    assert coerce_price(True) == 500
    assert coerce_price(float("nan")) == 500
    assert coerce_price(250) == 250


def test_find_function_arguments_picks_named_call():
    response = SimpleNamespace(
        output=[
            SimpleNamespace(type="reasoning"),
            SimpleNamespace(type="function_call", name="other", arguments='{"a": 1}'),
            SimpleNamespace(type="function_call", name="wanted", arguments='{"b": 2}'),
        ]
    )
    assert find_function_arguments(response, tool_name="wanted") == {"b": 2}
    assert find_function_arguments(response, tool_name="missing") is None


def test_find_function_arguments_rejects_non_object():
    response = SimpleNamespace(output=[SimpleNamespace(type="function_call", name="x", arguments="[1, 2]")])
    with pytest.raises(ValueError):
        find_function_arguments(response, tool_name="x")


def test_extract_text_reads_message_content_when_output_text_missing():
    response = SimpleNamespace(
        output_text=None,
        output=[
            SimpleNamespace(
                type="message",
                content=[
                    SimpleNamespace(type="output_text", text="Hello "),
                    SimpleNamespace(type="output_text", text="world"),
                ],
            )
        ],
    )
    assert extract_text(response) == "Hello world"


def test_extract_json_object_skips_prose_and_broken_braces():
    text = 'Sure! {not json} Here it is: {"title": "Dusk", "nested": {"x": 1}} trailing'
    assert extract_json_object(text) == {"title": "Dusk", "nested": {"x": 1}}
    assert extract_json_object("no json here") is None


def test_coerce_price_rejects_implausibly_large_prices():
    assert coerce_price(1e20) == 500
    assert coerce_price(float(MAX_PRICE)) == MAX_PRICE
    assert map_analysis({"suggestedPrice": 1e20}).suggested_price == 500
