"""Unit tests for principal parsing and gateway URL resolution."""

import pytest

from ic_llm import LLM_CANISTER_ID, EndpointResolutionError
from ic_llm.endpoint import Principal, resolve_gateway_url


class TestPrincipal:
    """Tests for the textual principal format."""

    def test_llm_canister_id_parses(self):
        """Test that the LLM canister principal is valid."""
        principal = Principal.from_text(LLM_CANISTER_ID)

        assert len(principal.raw) == 10
        assert principal.to_text() == LLM_CANISTER_ID
        assert str(principal) == LLM_CANISTER_ID

    def test_management_canister(self):
        """Test the empty principal, whose text is aaaaa-aa."""
        assert Principal(b"").to_text() == "aaaaa-aa"
        assert Principal.from_text("aaaaa-aa").raw == b""

    def test_roundtrip_arbitrary_bytes(self):
        """Test that rendered text parses back to the same bytes."""
        principal = Principal(bytes(range(10)))
        assert Principal.from_text(principal.to_text()) == principal

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "not a principal",
            "w36hm-eqaaa-aaaal-qr76a-caa",  # checksum mismatch
            "W36HM-EQAAA-AAAAL-QR76A-CAI",  # not canonical
            "w36hmeqaaaaaaalqr76acai",  # missing dashes
        ],
    )
    def test_invalid_principal_text(self, text):
        """Test that malformed principals fail to resolve."""
        with pytest.raises(EndpointResolutionError):
            Principal.from_text(text)

    def test_too_long(self):
        """Test that principals longer than 29 bytes are rejected."""
        text = Principal(b"\x01" * 30).to_text()
        with pytest.raises(EndpointResolutionError, match="too long"):
            Principal.from_text(text)


class TestGatewayUrl:
    """Tests for gateway URL validation."""

    def test_valid_url(self):
        """Test that an absolute http URL resolves."""
        url = resolve_gateway_url("http://127.0.0.1:4943")
        assert url.host == "127.0.0.1"
        assert url.port == 4943

    @pytest.mark.parametrize(
        "url", ["", "gateway.test", "ftp://gateway.test", "http://"]
    )
    def test_invalid_url(self, url):
        """Test that relative, empty and non-http URLs are rejected."""
        with pytest.raises(EndpointResolutionError):
            resolve_gateway_url(url)
