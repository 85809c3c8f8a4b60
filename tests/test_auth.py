"""Tests for AuthGate."""

import pytest

from jukebox.core import AuthError
from jukebox.protocol.codec import Command
from jukebox.security.auth import UNAUTHORIZED, AuthGate


class TestAuthGate:
    """Tests for shared-secret admission."""

    def test_no_secret_admits_everything(self) -> None:
        gate = AuthGate()
        assert not gate.enabled
        assert gate.check(Command(cmd="status")) is None
        assert gate.check(Command(cmd="status", token="anything")) is None

    def test_empty_secret_means_no_secret(self) -> None:
        gate = AuthGate("")
        assert not gate.enabled
        assert gate.check(Command(cmd="status")) is None

    def test_matching_token_passes(self) -> None:
        gate = AuthGate("s3cret")
        assert gate.check(Command(cmd="status", token="s3cret")) is None

    def test_missing_token_rejected(self) -> None:
        gate = AuthGate("s3cret")
        assert gate.check(Command(cmd="status")) == UNAUTHORIZED

    def test_wrong_token_rejected(self) -> None:
        gate = AuthGate("s3cret")
        assert gate.check(Command(cmd="status", token="guess")) == UNAUTHORIZED

    def test_comparison_is_exact(self) -> None:
        """No trimming or case folding."""
        gate = AuthGate("s3cret")
        assert not gate.is_authorized("S3CRET")
        assert not gate.is_authorized(" s3cret")
        assert not gate.is_authorized("s3cret\n")

    def test_unknown_command_still_needs_token(self) -> None:
        gate = AuthGate("s3cret")
        assert gate.check(Command(cmd="dance")) == UNAUTHORIZED

    def test_unauthorized_message(self) -> None:
        assert UNAUTHORIZED.ok is False
        assert UNAUTHORIZED.msg == "unauthorized"

    def test_authenticate_raises(self) -> None:
        gate = AuthGate("s3cret")
        with pytest.raises(AuthError, match="unauthorized"):
            gate.authenticate(Command(cmd="list", token="nope"))
        gate.authenticate(Command(cmd="list", token="s3cret"))
