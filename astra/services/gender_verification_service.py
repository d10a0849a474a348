# coding: utf-8
"""
Gender Verification Service

Zero-knowledge passport proof verification. The proof is checked by an
external verifier; this service only acts on the result:

- proof invalid -> ProofRejectedError
- disclosed gender != EXPECTED_GENDER -> GenderNotEligibleError
- otherwise the user named by userData.userIdentifier is marked verified
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import aiohttp
from loguru import logger
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from config.config import (
    EXPECTED_GENDER,
    PROOF_VERIFIER_SCOPE,
    PROOF_VERIFIER_TIMEOUT,
    PROOF_VERIFIER_URL,
    SERVER_URL,
)
from astra.core.exceptions import (
    GenderNotEligibleError,
    ProofRejectedError,
    UserNotFoundError,
    VerifierUnavailableError,
)
from astra.database import crud
from astra.database.models import User


@dataclass
class ProofResult:
    """Normalized verifier answer"""

    is_valid: bool
    credential_subject: Dict[str, Any] = field(default_factory=dict)
    user_data: Dict[str, Any] = field(default_factory=dict)
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> "ProofResult":
        details = data.get("isValidDetails") or {}
        return cls(
            is_valid=bool(details.get("isValid", data.get("isValid", False))),
            credential_subject=data.get("discloseOutput") or data.get("credentialSubject") or {},
            user_data=data.get("userData") or {},
            details=details,
        )


def _log_retry(retry_state) -> None:
    logger.warning(
        f"Proof verifier call failed (attempt {retry_state.attempt_number}), retrying: "
        f"{retry_state.outcome.exception()}"
    )


class HttpProofVerifier:
    """
    Client for the proof verification service

    Features:
    - Timeout per call (PROOF_VERIFIER_TIMEOUT)
    - Automatic retries on network errors
    """

    def __init__(
        self,
        url: str = PROOF_VERIFIER_URL,
        timeout: int = PROOF_VERIFIER_TIMEOUT,
        scope: str = PROOF_VERIFIER_SCOPE,
    ):
        self.url = url
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.scope = scope
        self.endpoint = f"{SERVER_URL}/api/users/verify-gender"

    @retry(
        retry=retry_if_exception_type((aiohttp.ClientError, TimeoutError)),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=5),
        before_sleep=_log_retry,
        reraise=True,
    )
    async def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            async with session.post(self.url, json=payload) as response:
                response.raise_for_status()
                return await response.json()

    async def verify(
        self,
        attestation_id: Any,
        proof: Any,
        public_signals: Any,
        user_context_data: Any,
    ) -> ProofResult:
        """
        Verify a proof

        Raises:
            VerifierUnavailableError: not configured, or unreachable after retries
        """
        if not self.url:
            raise VerifierUnavailableError("PROOF_VERIFIER_URL is not configured")

        payload = {
            "scope": self.scope,
            "endpoint": self.endpoint,
            "attestationId": attestation_id,
            "proof": proof,
            "publicSignals": public_signals,
            "userContextData": user_context_data,
        }

        try:
            data = await self._post(payload)
        except (aiohttp.ClientError, TimeoutError) as e:
            logger.error(f"Proof verifier unavailable: {e}")
            raise VerifierUnavailableError(reason=str(e))

        return ProofResult.from_response(data)


class GenderVerificationService:
    """Marks users as gender-verified from a verified proof"""

    def __init__(self, session: AsyncSession, verifier=None):
        self.session = session
        self.verifier = verifier or HttpProofVerifier()

    async def verify_gender(
        self,
        attestation_id: Any,
        proof: Any,
        public_signals: Any,
        user_context_data: Any,
    ) -> Dict[str, Any]:
        """
        Verify the proof and flag the user

        Returns:
            {"status": "success", "result": True, "credentialSubject", "userData"}

        Raises:
            ProofRejectedError, GenderNotEligibleError, UserNotFoundError,
            VerifierUnavailableError
        """
        result: ProofResult = await self.verifier.verify(
            attestation_id, proof, public_signals, user_context_data
        )

        if not result.is_valid:
            logger.warning("Gender verification: proof rejected")
            raise ProofRejectedError(verifier=result.details)

        if result.credential_subject.get("gender") != EXPECTED_GENDER:
            logger.info("Gender verification: disclosed gender not eligible")
            raise GenderNotEligibleError(verifier=result.details)

        user_id: Optional[str] = result.user_data.get("userIdentifier")
        user = await crud.get_user_by_user_id(self.session, user_id) if user_id else None
        if not user:
            raise UserNotFoundError(user_id=user_id)

        await self.session.execute(
            update(User)
            .where(User.id == user.id)
            .values(is_gender_verified=True)
            .execution_options(synchronize_session=False)
        )
        await self.session.commit()
        await self.session.refresh(user)

        logger.info(f"Gender verified for {user.user_hash[:8]}")
        return {
            "status": "success",
            "result": True,
            "credentialSubject": result.credential_subject,
            "userData": result.user_data,
        }
