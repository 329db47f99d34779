# deskillz/services/score_signer.py

import hashlib
import hmac
import logging
import math
import secrets
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union
from deskillz.exceptions.sdk_exceptions import SignerConfigurationException
from deskillz.schemas.score_schema import ScorePayload, SignedScore, VerificationResult

logger = logging.getLogger(__name__)

MIN_SECRET_LENGTH = 16
NONCE_BYTES = 16

_TWO_PLACES = Decimal("0.01")


def format_score(value: Union[int, float]) -> str:
    """
    Render a score the way the JavaScript clients print numbers
    
    Integral values have no fractional part (15000.0 -> "15000"); exponent
    notation is only used outside 1e-6 <= |x| < 1e21.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"Score must be a number, got {type(value).__name__}")
    if isinstance(value, int):
        return str(value)
    if not math.isfinite(value):
        raise ValueError(f"Score must be finite, got {value}")
    if value == 0:
        return "0"
    
    # repr gives the shortest round-trip digits, as JavaScript does
    text = repr(value)
    if "e" in text:
        mantissa, exponent = text.split("e")
        exp = int(exponent)
        if exp >= 21 or exp <= -7:
            sign = "+" if exp > 0 else "-"
            return f"{mantissa}e{sign}{abs(exp)}"
        text = format(Decimal(text), "f")
    if text.endswith(".0"):
        text = text[:-2]
    return text


def format_duration(duration: Optional[float]) -> str:
    """Two decimal places, rounding half up on the exact binary value; "0.00" when absent"""
    if duration is None:
        return "0.00"
    if not math.isfinite(duration):
        raise ValueError(f"Duration must be finite, got {duration}")
    if duration == 0:
        # -0.0 prints unsigned, as toFixed does
        return "0.00"
    return str(Decimal(duration).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))


def build_canonical_string(payload: ScorePayload, nonce: str) -> str:
    """gameId:matchId:score:duration:timestamp:nonce"""
    parts = [
        payload.game_id,
        payload.match_id,
        format_score(payload.score),
        format_duration(payload.duration),
        str(int(payload.timestamp)),
        nonce,
    ]
    return ":".join(parts)


def generate_nonce() -> str:
    """16 random bytes as 32 lowercase hex characters"""
    return secrets.token_hex(NONCE_BYTES)


def constant_time_equals(a: str, b: str) -> bool:
    """
    Compare two strings without short-circuiting on the first difference
    
    Length is compared first; HMAC-SHA256 hex signatures are always 64
    characters, so that branch reveals nothing secret.
    """
    if len(a) != len(b):
        return False
    
    result = 0
    for x, y in zip(a, b):
        result |= ord(x) ^ ord(y)
    return result == 0


class ScoreSigner:
    """
    HMAC-SHA256 signer for tamper-evident score submissions
    
    Usage:
        signer = ScoreSigner(api_secret)
        signed = signer.sign_score(ScorePayload(
            game_id="game-123",
            match_id="match-456",
            score=15000,
            duration=120.5,
            timestamp=get_timestamp(),
        ))
    
    The backend verifies the same canonical string with the same secret;
    verify_score here is an advisory pre-flight check.
    """
    
    def __init__(self, api_secret: str):
        if not api_secret or len(api_secret) < MIN_SECRET_LENGTH:
            raise SignerConfigurationException(
                f"ScoreSigner: api_secret must be at least {MIN_SECRET_LENGTH} characters"
            )
        self._secret = api_secret
        self._key: Optional["hmac.HMAC"] = None
    
    def _signing_key(self) -> "hmac.HMAC":
        """Keyed HMAC state derived once from the secret, copied per message"""
        if self._key is None:
            self._key = hmac.new(self._secret.encode("utf-8"), digestmod=hashlib.sha256)
        return self._key
    
    def _hmac_hex(self, message: str) -> str:
        mac = self._signing_key().copy()
        mac.update(message.encode("utf-8"))
        return mac.hexdigest()
    
    def sign_score(self, payload: ScorePayload) -> SignedScore:
        """
        Sign a score payload
        
        Args:
            payload: Score data; a nonce is generated when it has none
            
        Returns:
            SignedScore with the original fields, the resolved nonce and the signature
        """
        nonce = payload.nonce or generate_nonce()
        signature = self._hmac_hex(build_canonical_string(payload, nonce))
        
        fields = payload.model_dump(exclude={"nonce", "signature"})
        return SignedScore(**fields, nonce=nonce, signature=signature)
    
    def verify_score(self, signed_score: SignedScore) -> VerificationResult:
        """Recompute the signature over the given fields and compare in constant time"""
        try:
            canonical = build_canonical_string(signed_score, signed_score.nonce)
            expected = self._hmac_hex(canonical)
            valid = constant_time_equals(signed_score.signature, expected)
        except Exception as e:
            logger.debug(f"Score verification failed: {e}")
            return VerificationResult(valid=False, error=str(e) or "Verification failed")
        
        if not valid:
            return VerificationResult(valid=False, error="Signature mismatch")
        return VerificationResult(valid=True)


def sign_score(api_secret: str, payload: ScorePayload) -> SignedScore:
    """One-off signing without keeping a signer around"""
    return ScoreSigner(api_secret).sign_score(payload)


def verify_score(api_secret: str, signed_score: SignedScore) -> VerificationResult:
    return ScoreSigner(api_secret).verify_score(signed_score)


def calculate_hash(data: Union[str, bytes]) -> str:
    """SHA-256 hex digest of a string (UTF-8) or raw bytes, e.g. a build file's fileHash"""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha256(data).hexdigest()
