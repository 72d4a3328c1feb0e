"""
Off-chain recomputation of lock certificates.

The locker contract fingerprints a lock as sha3-256 over fixed-width hex
fields, so a certificate can be checked without trusting a node:

    id                 64 hex  (uint256)
    sha3(token)        64 hex
    amount, whole      24 hex  (uint96)
    amount, fraction   26 hex  (units of 10**-30)
    unlock time        8 hex   (uint32 Unix seconds)
    sha3(owner)        64 hex
    sha3(chain_id)     64 hex
"""

from __future__ import annotations

import hashlib
import logging
from datetime import datetime, timezone
from decimal import ROUND_DOWN, Decimal, localcontext
from typing import Any

logger = logging.getLogger("keep_locker.certificate")

MAX_UINT96 = 2**96 - 1
MAX_UINT32 = 2**32 - 1
AMOUNT_SCALE = 10**30
EPOCH = datetime(1970, 1, 1)


def sha3_text(value: str) -> str:
    """Hash text the way the contracting ``hashlib.sha3`` does."""
    try:
        data = bytes.fromhex(value)
    except ValueError:
        data = value.encode()
    return hashlib.sha3_256(data).hexdigest()


def unix_seconds(moment: Any) -> int:
    # Contracting datetimes expose calendar fields but are not stdlib datetimes
    if not isinstance(moment, datetime):
        moment = datetime(
            moment.year, moment.month, moment.day, moment.hour, moment.minute, moment.second
        )
    elif moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc).replace(tzinfo=None)
    seconds = int((moment - EPOCH).total_seconds())
    if not 0 <= seconds <= MAX_UINT32:
        raise ValueError(f"Unlock time {moment} does not fit in 32 bits.")
    return seconds


def encode_amount(amount: Any) -> str:
    value = Decimal(str(amount))
    if value < 0 or value > MAX_UINT96:
        raise ValueError(f"Amount {amount} does not fit in 96 bits.")
    # 29 integer digits plus 30 fractional ones must survive the split
    with localcontext() as context:
        context.prec = 64
        context.rounding = ROUND_DOWN
        whole = int(value)
        fraction = int((value - whole) * AMOUNT_SCALE)
    return format(whole, "024x") + format(fraction, "026x")


def lock_certificate(
    lock_id: int,
    token: str,
    amount: Any,
    unlock_time: Any,
    owner: str,
    chain_id: str,
) -> str:
    if lock_id < 0:
        raise ValueError("Lock id cannot be negative.")
    payload = (
        format(lock_id, "064x")
        + sha3_text(token)
        + encode_amount(amount)
        + format(unix_seconds(unlock_time), "08x")
        + sha3_text(owner)
        + sha3_text(chain_id)
    )
    return sha3_text(payload)


def verify_lock_certificate(record: dict[str, Any], chain_id: str, certificate: str) -> bool:
    """Check a certificate against a lock record as returned by ``get_lock``."""
    expected = lock_certificate(
        record["id"],
        record["token"],
        record["amount"],
        record["unlock_time"],
        record["owner"],
        chain_id,
    )
    if expected != certificate.lower():
        logger.warning("Certificate mismatch for lock %s", record["id"])
        return False
    return True
