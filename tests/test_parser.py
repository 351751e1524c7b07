import sys, pathlib; sys.path.insert(0, str(pathlib.Path(__file__).resolve().parents[1]))
import pytest

from llm_lead_quiz_gen.core import utils


def test_parse_strict_json_ok():
    txt = '{"questions": []}'
    assert utils.parse_json_object(txt) == {"questions": []}


def test_parse_with_extra_text():
    txt = "Sure! Here you go:\n```json\n{\"title\": \"Quiz\"}\n```\nThanks!"
    assert utils.parse_json_object(txt)["title"] == "Quiz"


def test_extract_spans_first_to_last_brace():
    txt = 'prefix {"a": {"b": 1}} suffix'
    assert utils.extract_json_text(txt) == '{"a": {"b": 1}}'


def test_extract_without_braces_returns_text():
    assert utils.extract_json_text("No JSON here") == "No JSON here"


def test_parse_malformed_json_raises():
    with pytest.raises(ValueError):
        utils.parse_json_object("No JSON here")


def test_parse_rejects_non_object():
    with pytest.raises(ValueError):
        utils.parse_json_object("[1, 2, 3]")


def test_looks_truncated():
    assert utils.looks_truncated('{"questions": [{"questionText": "Wh')
    assert not utils.looks_truncated('{"questions": []}\n')
    assert not utils.looks_truncated("I cannot help with that.")


def test_extract_surrounding_prose():
    assert utils.extract_json_text('Sure! Here you go: {"a":1} Hope that helps.') == '{"a":1}'
    assert utils.extract_json_text('{"a":1}') == '{"a":1}'
