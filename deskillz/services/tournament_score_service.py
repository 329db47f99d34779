# deskillz/services/tournament_score_service.py

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote
from deskillz.exceptions.sdk_exceptions import ScoreValidationException, SignerConfigurationException
from deskillz.schemas.score_schema import ScorePayload, ScoreSubmission, SignedScore
from deskillz.services.authenticated_transport import AuthenticatedTransport
from deskillz.services.score_signer import ScoreSigner
from deskillz.services.timestamps import is_timestamp_valid

logger = logging.getLogger(__name__)


class TournamentScoreService:
    """Submits HMAC-signed scores to POST /tournaments/{id}/score"""
    
    def __init__(self, transport: AuthenticatedTransport, signer: Optional[ScoreSigner] = None):
        self.transport = transport
        self.signer = signer
    
    @staticmethod
    def _score_path(tournament_id: str) -> str:
        return f"/tournaments/{quote(str(tournament_id), safe='')}/score"
    
    async def submit_signed_score(
        self,
        tournament_id: str,
        signed: SignedScore,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Send an already-signed score; the backend performs the authoritative check"""
        submission = ScoreSubmission.from_signed(signed, metadata)
        logger.info(f"Submitting score {signed.score} for tournament {tournament_id} (match {signed.match_id})")
        return await self.transport.post(self._score_path(tournament_id), submission.to_wire())
    
    async def sign_and_submit(
        self,
        tournament_id: str,
        payload: ScorePayload,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Sanity-check the timestamp, sign the payload and submit it
        
        Raises:
            SignerConfigurationException: No signer was configured
            ScoreValidationException: Timestamp outside the accepted window
        """
        if self.signer is None:
            raise SignerConfigurationException("Score signing requires an API secret")
        
        if not is_timestamp_valid(payload.timestamp):
            logger.warning(f"Rejecting score for match {payload.match_id}: timestamp {payload.timestamp} outside window")
            raise ScoreValidationException(
                "Score timestamp is outside the accepted window",
                details={"timestamp": payload.timestamp},
            )
        
        signed = self.signer.sign_score(payload)
        return await self.submit_signed_score(tournament_id, signed, metadata)
