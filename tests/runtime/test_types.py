"""Unit tests for constrained type aliases."""

from __future__ import annotations

import msgspec
import pytest

from remoteflow.runtime.types import (
    ChannelCapacity,
    ChannelName,
    ExpectedCount,
    TimeoutSeconds,
    validate,
)


class ChannelNameConfig(msgspec.Struct):
    """Helper struct for testing ChannelName."""

    value: ChannelName


class TimeoutSecondsConfig(msgspec.Struct):
    """Helper struct for testing TimeoutSeconds."""

    value: TimeoutSeconds


class TestChannelName:
    """Tests for ChannelName constraint."""

    @pytest.mark.parametrize('value', ['acct', 'slbIn', 'single-line-balance', 'orders.v2:in', '_x', '9lives'])
    def test_accepts_valid_names(self, value: str) -> None:
        result = msgspec.json.decode(msgspec.json.encode({'value': value}), type=ChannelNameConfig)
        assert result.value == value

    @pytest.mark.parametrize('value', ['', '-acct', 'has space', 'a/b', 'x' * 256])
    def test_rejects_invalid_names(self, value: str) -> None:
        with pytest.raises(msgspec.ValidationError):
            msgspec.json.decode(msgspec.json.encode({'value': value}), type=ChannelNameConfig)


class TestTimeoutSeconds:
    """Tests for TimeoutSeconds constraint (0 < t <= 86400)."""

    @pytest.mark.parametrize('value', [0.001, 0.1, 2.0, 86400.0])
    def test_accepts_valid_timeouts(self, value: float) -> None:
        result = msgspec.json.decode(f'{{"value": {value}}}'.encode(), type=TimeoutSecondsConfig)
        assert result.value == value

    @pytest.mark.parametrize('value', [0.0, -1.0, 86400.5])
    def test_rejects_invalid_timeouts(self, value: float) -> None:
        with pytest.raises(msgspec.ValidationError):
            msgspec.json.decode(f'{{"value": {value}}}'.encode(), type=TimeoutSecondsConfig)


class TestValidate:
    """Tests for the validate() helper."""

    def test_returns_value(self) -> None:
        assert validate(5, ChannelCapacity) == 5
        assert validate(0, ExpectedCount) == 0

    def test_raises_value_error(self) -> None:
        with pytest.raises(ValueError, match='-1'):
            validate(-1, ExpectedCount)

    def test_chains_validation_error(self) -> None:
        with pytest.raises(ValueError) as exc_info:
            validate('', ChannelName)
        assert isinstance(exc_info.value.__cause__, msgspec.ValidationError)
