import pytest

from dashlight.vocabulary import LABELS, index_of, resolve_label, sort_key


def test_vocabulary_has_36_unique_labels():
    assert len(LABELS) == 36
    assert len(set(LABELS)) == 36


def test_vocabulary_order_is_the_model_output_order():
    assert LABELS[0] == "abs"
    assert LABELS[24] == "oil_pressure"
    assert LABELS[-1] == "washer_fluid"
    assert index_of("oil_pressure") == 24
    assert index_of("spaceship") is None


def test_sort_key_puts_unknown_labels_last():
    assert sort_key("abs") < sort_key("washer_fluid") < sort_key("spaceship")


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("battery", ("battery", True)),
        ("BATTERY", ("battery", True)),
        ("check-engine", ("check_engine", True)),
        ("oilpressure_symbol", ("oil_pressure", True)),
        ("low coolant temperature", ("temperature", True)),
        ("", ("", False)),
        ("---", ("---", False)),
        ("spaceship", ("spaceship", False)),
    ],
)
def test_resolve_label(raw, expected):
    assert resolve_label(raw) == expected


def test_containment_takes_first_entry_in_vocabulary_order():
    # "absesp" contains both "abs" and "esp"; "abs" comes first
    assert resolve_label("abs_esp_combined") == ("abs", True)
