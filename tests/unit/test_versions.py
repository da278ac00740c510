"""
Unit tests for version normalization and ordering.
"""

import pytest

from xcbazel.engine.exceptions import ConfigurationError, InvalidVersionFormat
from xcbazel.engine.versions import Version, normalize

MATRIX_VERSIONS = ["8.3.3", "9.0", "9.1", "9.2"]


class TestNormalize:
    """Tests for the normalize() token."""

    @pytest.mark.parametrize(
        ("version", "expected"),
        [
            ("8.3.3", "833"),
            ("9.1", "910"),
            ("11.2", "1120"),
            ("9", "900"),
            ("9.0", "900"),
            ("9.0.0", "900"),
            ("8.2.1", "821"),
        ],
    )
    def test_known_values(self, version: str, expected: str) -> None:
        """Test the normalized token for known versions."""
        assert normalize(version) == expected

    def test_short_forms_are_equal(self) -> None:
        """Test that 9, 9.0 and 9.0.0 normalize identically."""
        assert normalize("9") == normalize("9.0") == normalize("9.0.0")

    def test_trailing_dot_is_stripped(self) -> None:
        """Test that one trailing dot is ignored."""
        assert normalize("9.") == "900"
        assert normalize("9.1.") == "910"

    def test_padding_reaches_three_fields(self) -> None:
        """Test that padding stops at three fields."""
        assert normalize("10") == "1000"
        assert normalize("10.1") == "1010"
        assert normalize("10.1.2") == "1012"

    def test_no_dots_remain(self) -> None:
        """Test that every separator is removed."""
        for version in ["1", "1.2", "1.2.3", "12.34.56"]:
            assert "." not in normalize(version)

    def test_matrix_ordering_matches_release_order(self) -> None:
        """Test integer ordering of tokens for the shipped matrix."""
        tokens = [int(normalize(v)) for v in MATRIX_VERSIONS]
        assert tokens == sorted(tokens)
        assert len(set(tokens)) == len(tokens)

    def test_known_collision(self) -> None:
        """Test that 1.11 and 11.1 collide, which Version does not."""
        assert normalize("1.11") == normalize("11.1") == "1110"
        assert Version.parse("1.11") < Version.parse("11.1")

    def test_trailing_zero_field_does_not_collide(self) -> None:
        """Test 9.20 keeps its extra digit, unlike 9.2."""
        assert normalize("9.2") == "920"
        assert normalize("9.20") == "9200"

    def test_malformed_input_does_not_raise(self) -> None:
        """Test that malformed input still yields a token."""
        assert normalize("abc") == "abc00"
        assert isinstance(normalize(""), str)


class TestVersionParse:
    """Tests for Version.parse()."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("9", Version(9, 0, 0)),
            ("9.1", Version(9, 1, 0)),
            ("8.3.3", Version(8, 3, 3)),
            ("9.", Version(9, 0, 0)),
            (" 10.0 ", Version(10, 0, 0)),
        ],
    )
    def test_valid(self, text: str, expected: Version) -> None:
        """Test parsing of valid version strings."""
        assert Version.parse(text) == expected

    @pytest.mark.parametrize("text", ["", "abc", "9.x", "-1", "9.1.2.3", "9..1", ".9"])
    def test_invalid(self, text: str) -> None:
        """Test that malformed strings raise InvalidVersionFormat."""
        with pytest.raises(InvalidVersionFormat) as exc_info:
            Version.parse(text)

        assert exc_info.value.error_code == "VERSION_001"
        assert exc_info.value.value == text

    def test_invalid_is_value_and_configuration_error(self) -> None:
        """Test InvalidVersionFormat can be caught either way."""
        with pytest.raises(ValueError):
            Version.parse("nope")
        with pytest.raises(ConfigurationError):
            Version.parse("nope")


class TestVersionOrdering:
    """Tests for Version comparison and tokens."""

    def test_field_wise_ordering(self) -> None:
        """Test cases that concatenated tokens get wrong."""
        assert Version.parse("9.9") < Version.parse("9.10")
        assert Version.parse("9.2") < Version.parse("9.20")
        assert Version.parse("8.3.3") < Version.parse("9")

    def test_matrix_ordering_agrees_with_normalize(self) -> None:
        """Test Version and normalize() order the shipped matrix identically."""
        by_version = sorted(MATRIX_VERSIONS, key=Version.parse)
        by_token = sorted(MATRIX_VERSIONS, key=lambda v: int(normalize(v)))
        assert by_version == by_token == MATRIX_VERSIONS

    def test_equal_short_forms(self) -> None:
        """Test that padding makes short forms equal."""
        assert Version.parse("9") == Version.parse("9.0.0")

    def test_as_number(self) -> None:
        """Test the legacy token from a parsed version."""
        assert Version.parse("9.1").as_number() == "910"

    def test_sort_token(self) -> None:
        """Test the zero-padded token."""
        assert Version.parse("9.2").sort_token() == "009002000"
        assert Version.parse("9.20").sort_token() == "009020000"
        assert Version.parse("9.2").sort_token(width=2) == "090200"

    def test_str(self) -> None:
        """Test the string form is always three fields."""
        assert str(Version.parse("9")) == "9.0.0"

    def test_frozen(self) -> None:
        """Test versions cannot be mutated."""
        version = Version.parse("9.1")
        with pytest.raises(AttributeError):
            version.major = 10  # type: ignore[misc]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
