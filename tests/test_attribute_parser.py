"""Tests for vision-answer parsing and normalization."""

import json

import pytest

from dress_studio.models.analysis import UNKNOWN
from dress_studio.utils.attribute_parser import (
    Parsed,
    Unparsed,
    extract_age_range,
    extract_colors,
    extract_confidence,
    extract_height,
    extract_measurement,
    extract_value,
    GENDERS,
    normalize_clothing,
    normalize_person,
    parse_response,
)


class TestParseResponse:

    def test_json_object_is_parsed(self):
        response = parse_response('{"bodyType": "Slim"}')

        assert response == Parsed({"bodyType": "Slim"})

    def test_code_fence_stripped(self):
        response = parse_response('```json\n{"gender": "Female"}\n```')

        assert isinstance(response, Parsed)
        assert response.record["gender"] == "Female"

    def test_prose_is_unparsed(self):
        text = "The person appears to be a slim woman in her mid 20s."

        assert parse_response(text) == Unparsed(text)

    def test_json_array_is_unparsed(self):
        assert isinstance(parse_response("[1, 2, 3]"), Unparsed)

    def test_none_is_unparsed(self):
        assert parse_response(None) == Unparsed("")


class TestExtractAgeRange:

    @pytest.mark.parametrize("text, expected", [
        ("looks to be in the mid 20s", "27-32"),
        ("early 30s", "30-33"),
        ("probably late 40's", "46-49"),
        ("age range 28-34", "28-34"),
        ("somewhere 20 to 30", "20-30"),
        ("Age 30", "28-32"),
        ("hard to say", UNKNOWN),
    ])
    def test_age_forms(self, text, expected):
        assert extract_age_range(text) == expected


class TestExtractHeight:

    @pytest.mark.parametrize("text, expected", [
        ("about 170 cm tall", "170cm"),
        ("roughly 1.8 m", "180cm"),
        ("1.65 meters", "165cm"),
        ("she is 5'9\" tall", "175cm"),
        ("6 ft 0 in", "183cm"),
        ("tall", UNKNOWN),
    ])
    def test_height_forms(self, text, expected):
        assert extract_height(text) == expected

    @pytest.mark.parametrize("text", [
        "Chest: 92 cm, waist: 74 cm. Height about 170 cm.",
        "Bust 88 cm; she is around 170 cm tall",
    ])
    def test_height_preferred_over_other_measurements(self, text):
        assert extract_height(text) == "170cm"


class TestTextHeuristics:

    def test_female_not_reported_as_male(self):
        assert extract_value("A female model", GENDERS) == "Female"

    def test_male(self):
        assert extract_value("a male model", GENDERS) == "Male"

    def test_unknown_when_no_term(self):
        assert extract_value("a person", GENDERS) == UNKNOWN

    def test_measurement_next_to_body_part(self):
        text = "Chest: 92 cm, waist around 74cm and hips 98 centimeters"

        assert extract_measurement(text, "chest") == "92cm"
        assert extract_measurement(text, "waist") == "74cm"
        assert extract_measurement(text, "hips") == "98cm"
        assert extract_measurement(text, "shoulders") == UNKNOWN

    def test_colors_limited_to_two(self):
        assert extract_colors("black and white dress with red trim") == ["Black", "White"]

    @pytest.mark.parametrize("text, expected", [
        ("about 85% sure", "85%"),
        ("confidence: 0.9", "90%"),
        ("Confidence 70", "70%"),
        ("no idea", UNKNOWN),
    ])
    def test_confidence(self, text, expected):
        assert extract_confidence(text) == expected


class TestNormalizePerson:

    def test_invalid_json_yields_full_schema(self):
        person = normalize_person(parse_response("{not json at all"))
        data = person.to_json_dict()

        assert set(data) == {
            "bodyType", "gender", "ageRange", "height", "measurements",
            "skinTone", "pose", "analysisConfidence",
        }
        assert set(data["measurements"]) == {"chest", "waist", "hips", "shoulders"}
        assert all(value == UNKNOWN for key, value in data.items() if key != "measurements")

    def test_prose_extraction(self):
        text = (
            "The image shows a slim female, likely in her mid 20s, about 5'9\" tall, "
            "standing with fair skin. Confidence around 80%."
        )
        person = normalize_person(Unparsed(text))

        assert person.body_type == "Slim"
        assert person.gender == "Female"
        assert person.age_range == "27-32"
        assert person.height == "175cm"
        assert person.pose == "Standing"
        assert person.skin_tone == "Fair"
        assert person.analysis_confidence == "80%"

    def test_parsed_record_passthrough(self):
        record = {
            "bodyType": "Athletic",
            "gender": "Male",
            "ageRange": "28-34",
            "height": "182cm",
            "measurements": {"chest": "100cm", "waist": ""},
            "skinTone": "Olive",
            "pose": "Walking",
            "analysisConfidence": "88%",
        }
        person = normalize_person(Parsed(record))

        assert person.age_range == "28-34"
        assert person.measurements.chest == "100cm"
        assert person.measurements.waist == UNKNOWN
        assert person.measurements.shoulders == UNKNOWN

    def test_non_dict_measurements_ignored(self):
        person = normalize_person(Parsed({"measurements": "unknown"}))

        assert person.measurements.hips == UNKNOWN


class TestNormalizeClothing:

    def test_secondary_color_none_when_absent(self):
        clothing = normalize_clothing(Parsed({"type": "Dress", "primaryColor": "Red"}))

        assert clothing.type == "Dress"
        assert clothing.secondary_color is None
        assert clothing.to_json_dict()["secondaryColor"] is None

    def test_prose_extraction(self):
        text = "A navy and white striped cotton shirt, slim fit with long sleeves and a v-neck."
        clothing = normalize_clothing(Unparsed(text))

        assert clothing.type == "Shirt"
        assert clothing.primary_color == "White"
        assert clothing.secondary_color == "Navy"
        assert clothing.pattern == "Striped"
        assert clothing.material == "Cotton"
        assert clothing.fit == "Slim fit"
        assert clothing.sleeves == "Long"
        assert clothing.neckline == "V-neck"

    def test_invalid_json_yields_full_schema(self):
        data = normalize_clothing(parse_response(json.dumps("just a string"))).to_json_dict()

        assert len(data) == 10
        assert data["secondaryColor"] is None
        assert data["type"] == UNKNOWN
