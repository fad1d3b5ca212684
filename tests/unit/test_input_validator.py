"""
Unit tests for InputValidator.

Every engine input passes through here before a transaction opens.
"""

import math

import pytest

from funtan.core.validation.input_validator import InputValidator
from funtan.database.models.enums import Currency, ItemKind
from funtan.modules.shared.exceptions import (
    InvalidCurrencyTypeError,
    InvalidUserError,
    ValidationError,
)
from funtan.modules.shared.result import ReasonCode

pytestmark = pytest.mark.unit


class TestPlayerId:
    def test_integer_snowflake_is_stringified(self):
        assert InputValidator.validate_player_id(123456789012345678) == "123456789012345678"

    def test_whitespace_is_stripped(self):
        assert InputValidator.validate_player_id("  42 ") == "42"

    @pytest.mark.parametrize("value", [None, "", "   ", True, 4.2, "x" * 65])
    def test_bad_ids_raise_invalid_user(self, value):
        with pytest.raises(InvalidUserError) as exc_info:
            InputValidator.validate_player_id(value)
        assert exc_info.value.reason is ReasonCode.INVALID_USER

    def test_custom_error_class(self):
        """Admin targets report InvalidInput rather than InvalidUser."""
        with pytest.raises(ValidationError) as exc_info:
            InputValidator.validate_player_id("", "target_id", error_cls=ValidationError)
        assert exc_info.value.reason is ReasonCode.INVALID_INPUT


class TestNumbers:
    def test_integral_float_accepted(self):
        assert InputValidator.validate_positive_integer(3.0, "quantity") == 3

    @pytest.mark.parametrize("value", [0, -1, 1.5, "2", True, math.inf, math.nan])
    def test_rejected(self, value):
        with pytest.raises(ValidationError):
            InputValidator.validate_positive_integer(value, "quantity")


class TestChoices:
    def test_case_insensitive(self):
        assert InputValidator.validate_choice(" Weapon ", "kind", ItemKind.values()) == "weapon"

    def test_unknown_choice(self):
        with pytest.raises(ValidationError) as exc_info:
            InputValidator.validate_choice("shield", "kind", ItemKind.values())
        assert exc_info.value.details["field"] == "kind"

    def test_catalog_id_lowercased(self):
        assert InputValidator.validate_catalog_id("W3") == "w3"


class TestCurrencyDeltas:
    def test_valid_map(self):
        deltas = InputValidator.validate_currency_deltas(
            {"bronze": 10, "Gems": -2.0}, Currency.values()
        )
        assert deltas == {"bronze": 10, "gems": -2}

    def test_empty_map_is_invalid_input(self):
        with pytest.raises(ValidationError) as exc_info:
            InputValidator.validate_currency_deltas({}, Currency.values())
        assert exc_info.value.reason is ReasonCode.INVALID_INPUT

    def test_unknown_currency(self):
        with pytest.raises(InvalidCurrencyTypeError) as exc_info:
            InputValidator.validate_currency_deltas({"platinum": 5}, Currency.values())
        assert exc_info.value.reason is ReasonCode.INVALID_CURRENCY_TYPE
        assert exc_info.value.details["currency"] == "platinum"

    @pytest.mark.parametrize("delta", [1.5, math.inf, math.nan, "5", None, False])
    def test_bad_delta(self, delta):
        with pytest.raises(ValidationError) as exc_info:
            InputValidator.validate_currency_deltas({"silver": delta}, Currency.values())
        assert not isinstance(exc_info.value, InvalidCurrencyTypeError)
