"""Off-chain helpers for the token locker contract."""

from keep_locker.certificate import lock_certificate, verify_lock_certificate
from keep_locker.deploy import LockerSettings, deploy_locker, read_contract, submit_contract

__all__ = [
    "LockerSettings",
    "deploy_locker",
    "lock_certificate",
    "read_contract",
    "submit_contract",
    "verify_lock_certificate",
]
