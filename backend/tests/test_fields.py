import pytest

from provider_directory.core.errors import InvalidInput
from provider_directory.models.fields import ImageList, OpeningHours, decode_or_default


@pytest.mark.parametrize("raw", [None, "", "not json", "{}", "42", '"text"', "null"])
def test_image_list_decode_falls_back_to_empty(raw):
    assert ImageList.decode(raw).paths == []


def test_image_list_decode_keeps_strings_only():
    assert ImageList.decode('["/a.png", 1, null, "/b.png"]').paths == ["/a.png", "/b.png"]


def test_image_list_decode_accepts_already_decoded_value():
    assert ImageList.decode(["/a.png"]) == ["/a.png"]


def test_image_list_parse():
    assert ImageList.parse('["/a.png", "https://cdn.x.com/b.png"]') == ["/a.png", "https://cdn.x.com/b.png"]
    assert ImageList.parse([]) == []


@pytest.mark.parametrize("raw", ["nope", '{"a": 1}', "[1]", '"x"', {"a": 1}])
def test_image_list_parse_rejects_malformed(raw):
    with pytest.raises(InvalidInput, match="Invalid existingImages format"):
        ImageList.parse(raw)


def test_image_list_extend_and_encode():
    images = ImageList(["/a.png"]).extend(["/uploads/1-b.png"])
    assert images.encode() == '["/a.png", "/uploads/1-b.png"]'
    assert list(images) == ["/a.png", "/uploads/1-b.png"]


@pytest.mark.parametrize("raw", [None, "", "{", "[1, 2]", "5", "true"])
def test_opening_hours_decode_falls_back_to_empty(raw):
    assert OpeningHours.decode(raw).days == {}


def test_opening_hours_decode_valid():
    raw = '{"monday": {"open": "09:00", "close": "17:00"}}'
    assert OpeningHours.decode(raw) == {"monday": {"open": "09:00", "close": "17:00"}}


def test_opening_hours_parse_normalizes_closed_days():
    hours = OpeningHours.parse({"sunday": {"open": "", "close": None}, "monday": {"open": "08:00"}})
    assert hours.days == {
        "sunday": {"open": None, "close": None},
        "monday": {"open": "08:00", "close": None},
    }


@pytest.mark.parametrize("raw", ["[1, 2]", "5", "{bad", '{"monday": "all day"}', '{"monday": {"open": 9}}'])
def test_opening_hours_parse_rejects_malformed(raw):
    with pytest.raises(InvalidInput, match="Invalid openingHours format"):
        OpeningHours.parse(raw)


def test_decode_or_default_logs_warning(caplog):
    with caplog.at_level("WARNING"):
        assert decode_or_default("[", list, "images", record_id="provider-1") == []
    assert "provider-1" in caplog.text
