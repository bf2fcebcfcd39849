"""
Credit tracking utilities.

Check balances and charge users for generated output.
"""

import asyncio
from typing import Optional

from shared.errors import InsufficientCreditsError, RetryableError, ValidationError
from shared.generation_client import GenerationClient
from shared.logging import get_logger

logger = get_logger("credit_tracking")


class CreditTracker:
    """Credit ledger access with per-user serialization of charges."""

    def __init__(self, client: GenerationClient):
        """
        Initialize credit tracker.

        Args:
            client: Generation service client exposing the credit endpoints
        """
        self.client = client
        # Locks per user_id for concurrent-safe operations
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_manager = asyncio.Lock()  # Lock for managing the locks dict

    async def _get_lock(self, user_id: str) -> asyncio.Lock:
        """Get or create lock for a user_id."""
        async with self._lock_manager:
            if user_id not in self._locks:
                self._locks[user_id] = asyncio.Lock()
            return self._locks[user_id]

    async def get_balance(self, user_id: str) -> int:
        """
        Get a user's credit balance.

        Raises:
            RetryableError: If the ledger cannot be reached
        """
        try:
            return await self.client.get_credits(user_id)
        except RetryableError:
            raise
        except Exception as e:
            logger.error(
                f"Failed to get credit balance for user {user_id}: {str(e)}",
                extra={"user_id": user_id, "error": str(e)}
            )
            raise RetryableError(f"Failed to get credit balance: {str(e)}") from e

    async def ensure_sufficient(
        self,
        user_id: str,
        required: int,
        job_id: Optional[str] = None
    ) -> int:
        """
        Ensure the user can afford a charge.

        Args:
            user_id: User ID
            required: Credits the operation will cost
            job_id: Optional job ID for error context

        Returns:
            Current balance

        Raises:
            InsufficientCreditsError: If the balance is below required
            RetryableError: If the ledger cannot be reached
        """
        balance = await self.get_balance(user_id)
        if balance < required:
            error_msg = (
                f"Insufficient credits: {required} required, {balance} available"
            )
            logger.warning(
                error_msg,
                extra={"user_id": user_id, "required": required, "available": balance}
            )
            raise InsufficientCreditsError(
                error_msg, required=required, available=balance, job_id=job_id
            )
        return balance

    async def charge(
        self,
        user_id: str,
        amount: int,
        reason: str,
        job_id: Optional[str] = None
    ) -> bool:
        """
        Charge credits to a user.

        Args:
            user_id: User ID
            amount: Credits to deduct
            reason: Ledger description
            job_id: Optional job ID for logging

        Returns:
            True if a deduction was made, False for a zero amount

        Raises:
            ValidationError: If amount is negative
            RetryableError: If the deduction fails
        """
        if amount < 0:
            raise ValidationError(f"Charge cannot be negative: {amount}", job_id=job_id)
        if amount == 0:
            return False

        lock = await self._get_lock(user_id)

        async with lock:
            try:
                await self.client.deduct_credits(user_id, amount, reason)
            except Exception as e:
                logger.error(
                    f"Failed to charge {amount} credits to user {user_id}: {str(e)}",
                    extra={"user_id": user_id, "amount": amount, "error": str(e)}
                )
                if isinstance(e, RetryableError):
                    raise
                raise RetryableError(f"Failed to charge credits: {str(e)}") from e

        logger.info(
            f"Charged {amount} credits to user {user_id}",
            extra={"user_id": user_id, "amount": amount, "reason": reason}
        )
        return True
