"""Stand-in payment provider.

Charges always go through this module so a real provider client can replace
``SimulatedGateway`` without touching the payment endpoint.
"""

from __future__ import annotations

import logging
import random
import string
import time
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from app.core.config import settings
from app.core.errors import PaymentFailedError

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits


def _reference(prefix: str, rng: random.Random) -> str:
    suffix = "".join(rng.choice(_ID_ALPHABET) for _ in range(9))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}"


@dataclass
class ChargeResult:
    transaction_id: str
    amount: Decimal
    currency: str
    provider: str
    processed_at: datetime
    gateway_response: Dict[str, Any] = field(default_factory=dict)


class SimulatedGateway:
    def __init__(
        self,
        failure_rate: Optional[float] = None,
        delay_seconds: Optional[float] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.failure_rate = (
            settings.PAYMENT_FAILURE_RATE if failure_rate is None else failure_rate
        )
        self.delay_seconds = (
            settings.PAYMENT_SIMULATED_DELAY_SECONDS if delay_seconds is None else delay_seconds
        )
        self.rng = rng or random.Random()

    def failed_reference(self) -> str:
        return _reference("failed", self.rng)

    def charge(
        self,
        *,
        amount: Decimal,
        currency: str,
        provider: str,
        payment_method_id: str,
        booking_id: int,
    ) -> ChargeResult:
        """Capture ``amount``; raises ``PaymentFailedError`` when declined."""
        if self.delay_seconds > 0:
            time.sleep(self.delay_seconds)
        if self.rng.random() < self.failure_rate:
            logger.info("Simulated charge declined for booking %s", booking_id)
            raise PaymentFailedError("Payment failed, please try again")
        processed_at = datetime.utcnow()
        transaction_id = _reference("txn", self.rng)
        logger.info(
            "Simulated charge ok booking=%s txn=%s amount=%s %s",
            booking_id,
            transaction_id,
            amount,
            currency,
        )
        return ChargeResult(
            transaction_id=transaction_id,
            amount=amount,
            currency=currency,
            provider=provider,
            processed_at=processed_at,
            gateway_response={
                "success": True,
                "transaction_id": transaction_id,
                "status": "COMPLETED",
                "payment_method_id": payment_method_id,
                "timestamp": processed_at.isoformat(),
            },
        )


def get_payment_gateway() -> SimulatedGateway:
    return SimulatedGateway()


__all__ = ["ChargeResult", "SimulatedGateway", "get_payment_gateway"]
