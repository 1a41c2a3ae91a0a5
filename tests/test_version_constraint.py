"""
Tests for version parsing and minimum-version checks.
"""

import pytest

from devsetup.core.domain.version_constraint import parse_version, satisfies_minimum


class TestParseVersion:
    def test_three_parts(self):
        assert parse_version("18.19.0") == (18, 19, 0)

    def test_leading_v(self):
        assert parse_version("v20.1.2") == (20, 1, 2)

    def test_padding(self):
        assert parse_version("3") == (3, 0, 0)

    def test_letter_suffix(self):
        assert parse_version("3.3a") == (3, 3, 0)

    def test_extra_parts_dropped(self):
        assert parse_version("1.2.3.4") == (1, 2, 3)

    def test_not_a_version(self):
        with pytest.raises(ValueError):
            parse_version("next")


class TestSatisfiesMinimum:
    def test_no_minimum(self):
        assert satisfies_minimum("1.0.0", None) == (True, "")

    def test_unknown_version(self):
        assert satisfies_minimum(None, "18.0.0") == (True, "")

    def test_equal(self):
        assert satisfies_minimum("18.0.0", "18.0.0")[0]

    def test_newer(self):
        assert satisfies_minimum("20.11.1", "18.0.0")[0]

    def test_older(self):
        ok, msg = satisfies_minimum("16.20.2", "18.0.0")
        assert not ok
        assert msg == "version 16.20.2 < 18.0.0 (minimum required)"

    def test_numeric_not_lexical(self):
        assert satisfies_minimum("10.0.0", "9.0.0")[0]

    def test_unparseable_satisfies(self):
        assert satisfies_minimum("nightly", "1.0.0") == (True, "")
