"""
Tests for decoding structured payloads from model output.
"""
import pytest

from lexicon_lookup.exceptions import ParseError, PayloadValidationError
from lexicon_lookup.resolvers.payload_decoder import (
    STRATEGY_BALANCED,
    STRATEGY_LINE_WINDOW,
    STRATEGY_STRICT,
    decode_translation_payload,
)
from lexicon_lookup.schemas import TranslationPayload


class TestDecodeTranslationPayload:
    """Tests for decode_translation_payload."""

    def test_strict_json(self):
        """Test that a bare JSON answer decodes with the strict strategy."""
        result = decode_translation_payload(
            '{"targetTerm": "nno", "meaning": "A greeting", "confidence": 0.9}'
        )

        assert result.ok
        assert result.strategy == STRATEGY_STRICT
        assert result.payload.target_term == "nno"
        assert result.payload.meaning == "A greeting"
        assert result.payload.confidence == pytest.approx(0.9)

    def test_fenced_json(self):
        """Test that a fenced code block is unwrapped."""
        text = 'Here is the translation:\n```json\n{"targetTerm": "mmong"}\n```\nEnjoy!'

        result = decode_translation_payload(text)

        assert result.ok
        assert result.strategy == STRATEGY_STRICT
        assert result.payload.target_term == "mmong"

    def test_object_embedded_in_prose(self):
        """Test that an object inside prose is found by brace balancing."""
        text = 'Sure! The answer is {"ibibio": "mmong", "meaning": "water {liquid}", "confidence": 95} hope this helps'

        result = decode_translation_payload(text)

        assert result.ok
        assert result.strategy == STRATEGY_BALANCED
        assert result.payload.target_term == "mmong"
        assert result.payload.meaning == "water {liquid}"
        assert result.payload.confidence == pytest.approx(0.95)

    def test_trailing_comma_repaired(self):
        """Test that the line window repairs trailing commas."""
        text = 'Translation result:\n{\n  "targetTerm": "uduak",\n  "confidence": 0.8,\n}\nDone.'

        result = decode_translation_payload(text)

        assert result.ok
        assert result.strategy == STRATEGY_LINE_WINDOW
        assert result.payload.target_term == "uduak"

    def test_python_literal_accepted(self):
        """Test that single-quoted, Python-style objects are decoded."""
        text = "{'targetTerm': 'akpa', 'confidence': 0.7, 'culturalNote': null}"

        result = decode_translation_payload(text)

        assert result.ok
        assert result.payload.target_term == "akpa"
        assert result.payload.cultural_note is None

    def test_no_payload_is_parse_error(self):
        """Test that prose without an object reports ParseError."""
        result = decode_translation_payload("I am not sure how to translate that word.")

        assert not result.ok
        assert isinstance(result.error, ParseError)
        assert not isinstance(result.error, PayloadValidationError)

    def test_empty_response(self):
        """Test that an empty response is a parse error."""
        result = decode_translation_payload("   ")

        assert not result.ok
        assert isinstance(result.error, ParseError)

    def test_invalid_payload_is_validation_error(self):
        """Test that an object without a target term fails validation."""
        result = decode_translation_payload('{"meaning": "A greeting", "confidence": 0.9}')

        assert not result.ok
        assert isinstance(result.error, PayloadValidationError)


class TestTranslationPayload:
    """Tests for TranslationPayload defaults and normalization."""

    def test_defaults(self):
        """Test that optional fields get explicit defaults."""
        payload = TranslationPayload.model_validate({"targetTerm": "nno"})

        assert payload.confidence == 0.5
        assert payload.examples == []
        assert payload.cultural_note is None
        assert payload.alternatives == []

    def test_confidence_clipped(self):
        """Test that out-of-range confidences are clipped into [0, 1]."""
        assert TranslationPayload.model_validate({"targetTerm": "a", "confidence": -3}).confidence == 0.0
        assert TranslationPayload.model_validate({"targetTerm": "a", "confidence": 250}).confidence == 1.0

    def test_blank_target_rejected(self):
        """Test that a blank target term is invalid."""
        with pytest.raises(ValueError):
            TranslationPayload.model_validate({"targetTerm": "   "})

    def test_alternatives_flattened(self):
        """Test that object and string alternatives become plain terms."""
        payload = TranslationPayload.model_validate({
            "targetTerm": "nno",
            "alternatives": [{"targetTerm": "mesiere"}, "emesiere", "", None],
        })

        assert payload.alternatives == ["mesiere", "emesiere"]

    def test_examples_parsed(self):
        """Test that example objects are kept and other shapes dropped."""
        payload = TranslationPayload.model_validate({
            "targetTerm": "mmong",
            "examples": [{"english": "I need water", "ibibio": "Ami nyom mmong"}, "loose text"],
        })

        assert len(payload.examples) == 1
        assert payload.examples[0].source == "I need water"
        assert payload.examples[0].target == "Ami nyom mmong"

    def test_null_cultural_note_strings(self):
        """Test that 'null' text for the cultural note means no note."""
        payload = TranslationPayload.model_validate({"targetTerm": "nno", "culturalNote": "null"})

        assert payload.cultural_note is None
