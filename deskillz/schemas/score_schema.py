# deskillz/schemas/score_schema.py

from typing import Any, Dict, Optional, Union
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that speaks camelCase on the wire and snake_case in Python"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class ScorePayload(CamelModel):
    """Score produced by game logic at match end"""
    game_id: str
    match_id: str
    score: Union[int, float]
    duration: Optional[float] = None  # seconds
    timestamp: int  # unix seconds when the score was achieved
    nonce: Optional[str] = None  # generated at signing time when omitted


class SignedScore(ScorePayload):
    """Score payload plus the resolved nonce and hex HMAC-SHA256 signature"""
    nonce: str
    signature: str


class VerificationResult(BaseModel):
    """Outcome of a client-side signature check"""
    valid: bool
    error: Optional[str] = None


class ScoreSubmission(CamelModel):
    """Body of POST /tournaments/{id}/score"""
    score: Union[int, float]
    signature: str
    match_id: str
    timestamp: int
    nonce: str
    metadata: Optional[Dict[str, Any]] = None
    
    @classmethod
    def from_signed(cls, signed: SignedScore, metadata: Optional[Dict[str, Any]] = None) -> "ScoreSubmission":
        return cls(
            score=signed.score,
            signature=signed.signature,
            match_id=signed.match_id,
            timestamp=signed.timestamp,
            nonce=signed.nonce,
            metadata=metadata,
        )
    
    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)

