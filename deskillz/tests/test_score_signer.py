# tests/test_score_signer.py

import re
import pytest
from unittest.mock import patch
from deskillz.exceptions.sdk_exceptions import SignerConfigurationException
from deskillz.schemas.score_schema import ScorePayload, SignedScore
from deskillz.services import score_signer as score_signer_module
from deskillz.services.score_signer import (
    ScoreSigner,
    build_canonical_string,
    calculate_hash,
    constant_time_equals,
    format_duration,
    format_score,
    generate_nonce,
    sign_score,
    verify_score,
)


SECRET = "test-secret-key-1234"

# HMAC-SHA256(SECRET, "g1:m1:15000:120.50:1700000000:abc123")
GOLDEN_SIGNATURE = "7ede03c5632eb1ebf4ca54ed777c39b1494078039175e9ffd7aabdc7f6219f79"
# HMAC-SHA256(SECRET, "g1:m1:15000:0.00:1700000000:abc123")
GOLDEN_SIGNATURE_NO_DURATION = "5fba65aed7e37f928b733a75a7be2f617aefd7ebc7fa1c3a08c2e7ec42919ccc"


@pytest.fixture
def signer() -> ScoreSigner:
    return ScoreSigner(SECRET)


@pytest.fixture
def golden_payload() -> ScorePayload:
    return ScorePayload(
        game_id="g1",
        match_id="m1",
        score=15000,
        duration=120.5,
        timestamp=1700000000,
        nonce="abc123",
    )


class TestConstruction:
    """Tests for the secret-length guard"""
    
    @pytest.mark.unit
    @pytest.mark.parametrize("secret", ["", "short", "x" * 15])
    def test_rejects_short_secret(self, secret):
        with pytest.raises(SignerConfigurationException, match="at least 16 characters"):
            ScoreSigner(secret)
    
    @pytest.mark.unit
    def test_construction_error_is_value_error(self):
        with pytest.raises(ValueError):
            ScoreSigner("too-short")
    
    @pytest.mark.unit
    def test_accepts_sixteen_characters(self):
        ScoreSigner("x" * 16)
    
    @pytest.mark.unit
    def test_key_derived_lazily_and_cached(self):
        signer = ScoreSigner(SECRET)
        assert signer._key is None
        
        key = signer._signing_key()
        
        assert signer._signing_key() is key


class TestCanonicalString:
    """Tests for the byte-exact canonical payload"""
    
    @pytest.mark.unit
    def test_golden_vector(self, golden_payload):
        assert build_canonical_string(golden_payload, "abc123") == "g1:m1:15000:120.50:1700000000:abc123"
    
    @pytest.mark.unit
    def test_missing_duration(self, golden_payload):
        payload = golden_payload.model_copy(update={"duration": None})
        
        assert build_canonical_string(payload, "n") == "g1:m1:15000:0.00:1700000000:n"
    
    @pytest.mark.unit
    @pytest.mark.parametrize("value,expected", [
        (15000, "15000"),
        (15000.0, "15000"),
        (-3, "-3"),
        (12.34, "12.34"),
        (0.1, "0.1"),
        (0.00001, "0.00001"),
        (1.5e-7, "1.5e-7"),
        (1e21, "1e+21"),
        (123456789012345680000.0, "123456789012345680000"),
    ])
    def test_format_score(self, value, expected):
        assert format_score(value) == expected
    
    @pytest.mark.unit
    @pytest.mark.parametrize("value", [float("nan"), float("inf")])
    def test_format_score_rejects_non_finite(self, value):
        with pytest.raises(ValueError):
            format_score(value)
    
    @pytest.mark.unit
    def test_format_score_rejects_non_numbers(self):
        with pytest.raises(TypeError):
            format_score("100")
        with pytest.raises(TypeError):
            format_score(True)
    
    @pytest.mark.unit
    @pytest.mark.parametrize("value,expected", [
        (None, "0.00"),
        (120.5, "120.50"),
        (0, "0.00"),
        (-0.0, "0.00"),
        (-0.001, "-0.00"),
        (1.005, "1.00"),  # 1.005 is 1.00499999... in binary
        (0.125, "0.13"),  # exact tie rounds half up
        (59.999, "60.00"),
    ])
    def test_format_duration(self, value, expected):
        assert format_duration(value) == expected


class TestSigning:
    """Tests for sign_score / verify_score"""
    
    @pytest.mark.unit
    def test_golden_signature(self, signer, golden_payload):
        signed = signer.sign_score(golden_payload)
        
        assert signed.signature == GOLDEN_SIGNATURE
        assert signed.nonce == "abc123"
    
    @pytest.mark.unit
    def test_golden_signature_without_duration(self, signer, golden_payload):
        payload = golden_payload.model_copy(update={"duration": None})
        
        assert signer.sign_score(payload).signature == GOLDEN_SIGNATURE_NO_DURATION
    
    @pytest.mark.unit
    def test_signed_score_keeps_payload_fields(self, signer, golden_payload):
        signed = signer.sign_score(golden_payload)
        
        assert isinstance(signed, SignedScore)
        assert signed.game_id == "g1"
        assert signed.match_id == "m1"
        assert signed.score == 15000
        assert signed.duration == 120.5
        assert signed.timestamp == 1700000000
    
    @pytest.mark.unit
    def test_generates_nonce_when_missing(self, signer, golden_payload):
        payload = golden_payload.model_copy(update={"nonce": None})
        
        signed = signer.sign_score(payload)
        
        assert re.fullmatch(r"[0-9a-f]{32}", signed.nonce)
        assert signer.verify_score(signed).valid is True
    
    @pytest.mark.unit
    def test_generated_nonces_differ(self):
        assert generate_nonce() != generate_nonce()
    
    @pytest.mark.unit
    def test_signature_is_lowercase_hex(self, signer, golden_payload):
        signature = signer.sign_score(golden_payload).signature
        
        assert re.fullmatch(r"[0-9a-f]{64}", signature)
    
    @pytest.mark.unit
    def test_integral_float_score_matches_int(self, signer, golden_payload):
        payload = golden_payload.model_copy(update={"score": 15000.0})
        
        assert signer.sign_score(payload).signature == GOLDEN_SIGNATURE
    
    @pytest.mark.unit
    def test_resigning_signed_score(self, signer, golden_payload):
        signed = signer.sign_score(golden_payload)
        
        assert signer.sign_score(signed).signature == GOLDEN_SIGNATURE
    
    @pytest.mark.unit
    def test_verify_roundtrip(self, signer, golden_payload):
        assert signer.verify_score(signer.sign_score(golden_payload)).valid is True
    
    @pytest.mark.unit
    @pytest.mark.parametrize("field,value", [
        ("score", 15001),
        ("game_id", "g2"),
        ("match_id", "m2"),
        ("duration", 120.51),
        ("timestamp", 1700000001),
        ("nonce", "abc124"),
    ])
    def test_tampering_detected(self, signer, golden_payload, field, value):
        signed = signer.sign_score(golden_payload)
        tampered = signed.model_copy(update={field: value})
        
        result = signer.verify_score(tampered)
        
        assert result.valid is False
        assert result.error == "Signature mismatch"
    
    @pytest.mark.unit
    def test_wrong_secret_fails(self, golden_payload):
        signed = ScoreSigner(SECRET).sign_score(golden_payload)
        
        result = ScoreSigner("another-secret-key-5678").verify_score(signed)
        
        assert result.valid is False
    
    @pytest.mark.unit
    def test_truncated_signature_fails(self, signer, golden_payload):
        signed = signer.sign_score(golden_payload)
        
        result = signer.verify_score(signed.model_copy(update={"signature": signed.signature[:-1]}))
        
        assert result.valid is False
        assert result.error == "Signature mismatch"
    
    @pytest.mark.unit
    def test_verify_reports_exceptions(self, signer, golden_payload):
        signed = signer.sign_score(golden_payload).model_copy(update={"score": float("nan")})
        
        result = signer.verify_score(signed)
        
        assert result.valid is False
        assert "finite" in result.error
    
    @pytest.mark.unit
    def test_verify_uses_constant_time_compare(self, signer, golden_payload):
        signed = signer.sign_score(golden_payload)
        
        with patch.object(score_signer_module, "constant_time_equals", wraps=constant_time_equals) as spy:
            signer.verify_score(signed)
        
        spy.assert_called_once_with(GOLDEN_SIGNATURE, GOLDEN_SIGNATURE)
    
    @pytest.mark.unit
    def test_camel_case_wire_fields(self, signer):
        payload = ScorePayload.model_validate({
            "gameId": "g1", "matchId": "m1", "score": 15000,
            "duration": 120.5, "timestamp": 1700000000, "nonce": "abc123",
        })
        
        signed = signer.sign_score(payload)
        
        assert signed.signature == GOLDEN_SIGNATURE
        assert signed.model_dump(by_alias=True)["matchId"] == "m1"


class TestHelpers:
    """Tests for standalone helpers"""
    
    @pytest.mark.unit
    def test_constant_time_equals(self):
        assert constant_time_equals("abc", "abc") is True
        assert constant_time_equals("abc", "abd") is False
        assert constant_time_equals("abc", "abcd") is False
        assert constant_time_equals("", "") is True
    
    @pytest.mark.unit
    def test_standalone_sign_and_verify(self, golden_payload):
        signed = sign_score(SECRET, golden_payload)
        
        assert signed.signature == GOLDEN_SIGNATURE
        assert verify_score(SECRET, signed).valid is True
    
    @pytest.mark.unit
    def test_standalone_rejects_short_secret(self, golden_payload):
        with pytest.raises(SignerConfigurationException):
            sign_score("short", golden_payload)
    
    @pytest.mark.unit
    def test_calculate_hash(self):
        expected = "2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824"
        
        assert calculate_hash("hello") == expected
        assert calculate_hash(b"hello") == expected
