import pytest

from timeline.api.v1.endpoints.form_helpers import (
    collect_text_fields,
    collect_year_fields,
    parse_child_list,
    parse_id_field,
)
from timeline.core.exceptions import ValidationError


def test_child_list_not_sent_means_unchanged():
    assert parse_child_list(None, "subevents") is None


def test_child_list_empty_string_is_empty_list():
    assert parse_child_list("", "subevents") == []


def test_child_list_parses_rows():
    rows = parse_child_list('[{"title": "A", "year": "1789"}, {"id": 3, "title": "", "year": ""}]', "subevents")
    assert (rows[0].title, rows[0].year) == ("A", 1789)
    assert rows[1].id == 3 and rows[1].is_blank and rows[1].year is None


@pytest.mark.parametrize("raw", ['{"title": "A"}', "[1, 2]", "nicht json", '[{"title": "A", "year": "abc"}]'])
def test_child_list_rejects_bad_input(raw):
    with pytest.raises(ValidationError):
        parse_child_list(raw, "subevents")


def test_year_fields_clear_and_parse():
    assert collect_year_fields({"start_year": "1789", "end_year": "", "born": None}) == {
        "start_year": 1789,
        "end_year": None,
    }
    assert collect_year_fields({"born": "-44"}) == {"born": -44}


def test_year_field_rejects_text():
    with pytest.raises(ValidationError):
        collect_year_fields({"start_year": "siebzehn"})


def test_text_fields():
    assert collect_text_fields({"title": " Titel ", "place": "", "summary": None}) == {
        "title": "Titel",
        "place": None,
    }
    with pytest.raises(ValidationError):
        collect_text_fields({"title": "  "}, required=("title",))


def test_era_id_field():
    assert parse_id_field("", "era_id") is None
    assert parse_id_field("4", "era_id") == 4
    with pytest.raises(ValidationError):
        parse_id_field("0", "era_id")
