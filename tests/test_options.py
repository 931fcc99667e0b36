"""Tests for DelayOptions validation."""

import pytest

from delayrender.core.options import DEFER, DelayOptions, InvalidConfigurationError

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------


class TestDefaults:
    """An empty DelayOptions mounts and renders with no delay."""

    def test_delays_default_to_zero(self) -> None:
        options = DelayOptions()
        assert options.enter_delay == 0
        assert options.exit_delay == 0
        assert options.on_discard is None

    def test_idle_defaults(self) -> None:
        options = DelayOptions()
        assert options.idle_timeout == 100
        assert options.idle_fallback_delay == 1

    def test_defer_sentinel_is_minus_one(self) -> None:
        assert DEFER == -1
        assert DelayOptions(enter_delay=DEFER).defers_enter is True
        assert DelayOptions(enter_delay=0).defers_enter is False


# ---------------------------------------------------------------------------
# Range validation
# ---------------------------------------------------------------------------


class TestRangeValidation:
    """Negative delays other than DEFER are rejected at construction."""

    @pytest.mark.parametrize("value", [-2, -100])
    def test_negative_enter_delay_rejected(self, value: int) -> None:
        with pytest.raises(InvalidConfigurationError):
            DelayOptions(enter_delay=value)

    def test_negative_exit_delay_rejected(self) -> None:
        with pytest.raises(InvalidConfigurationError):
            DelayOptions(exit_delay=-1)

    def test_negative_idle_settings_rejected(self) -> None:
        with pytest.raises(InvalidConfigurationError):
            DelayOptions(idle_timeout=-1)
        with pytest.raises(InvalidConfigurationError):
            DelayOptions(idle_fallback_delay=-1)

    def test_error_is_a_value_error(self) -> None:
        with pytest.raises(ValueError, match="enter_delay"):
            DelayOptions(enter_delay=-3)

    def test_replace_revalidates(self) -> None:
        options = DelayOptions(exit_delay=200)
        with pytest.raises(InvalidConfigurationError):
            options.replace(exit_delay=-5)

    def test_replace_keeps_other_fields(self) -> None:
        options = DelayOptions(enter_delay=300, exit_delay=200).replace(exit_delay=50)
        assert options.enter_delay == 300
        assert options.exit_delay == 50


# ---------------------------------------------------------------------------
# Type validation
# ---------------------------------------------------------------------------


class TestTypeValidation:
    """Delays must be real integers and on_discard must be callable."""

    def test_float_delay_raises_type_error(self) -> None:
        with pytest.raises(TypeError):
            DelayOptions(enter_delay=1.5)  # type: ignore[arg-type]

    def test_bool_delay_raises_type_error(self) -> None:
        with pytest.raises(TypeError):
            DelayOptions(exit_delay=True)

    def test_non_callable_discard_raises_type_error(self) -> None:
        with pytest.raises(TypeError):
            DelayOptions(on_discard="nope")  # type: ignore[arg-type]

    def test_options_are_frozen(self) -> None:
        options = DelayOptions()
        with pytest.raises(AttributeError):
            options.enter_delay = 10  # type: ignore[misc]
