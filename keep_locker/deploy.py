from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from decimal import Decimal
from importlib import resources
from pathlib import PurePosixPath
from typing import Any, Mapping

from contracting.client import ContractingClient
from contracting.stdlib.bridge.decimal import ContractingDecimal

logger = logging.getLogger("keep_locker.deploy")

# Contract sources ship as package data next to this module
CONTRACTS = resources.files("keep_locker") / "contracts"
LOCKER_CONTRACT = "con_token_locker"


@dataclass
class LockerSettings:
    """Construction-time configuration. Nothing here can change after deployment."""

    lock_fee: Decimal = Decimal("0.02")
    vesting_fee: Decimal = Decimal("0.05")
    fee_receiver: str = "sys"
    fee_token: str = "currency"
    chain_id: str = "xian-network"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "LockerSettings":
        environ = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            lock_fee=Decimal(environ.get("KEEP_LOCK_FEE", defaults.lock_fee)),
            vesting_fee=Decimal(environ.get("KEEP_VESTING_FEE", defaults.vesting_fee)),
            fee_receiver=environ.get("KEEP_FEE_RECEIVER", defaults.fee_receiver),
            fee_token=environ.get("KEEP_FEE_TOKEN", defaults.fee_token),
            chain_id=environ.get("KEEP_CHAIN_ID", defaults.chain_id),
        )

    def constructor_args(self) -> dict[str, Any]:
        if self.lock_fee < 0 or self.vesting_fee < 0:
            raise ValueError("Fees cannot be negative.")
        if not self.fee_receiver:
            raise ValueError("Fee receiver cannot be empty.")
        return {
            "lock_fee": ContractingDecimal(str(self.lock_fee)),
            "vesting_fee": ContractingDecimal(str(self.vesting_fee)),
            "fee_receiver": self.fee_receiver,
            "fee_token": self.fee_token,
            "chain_id": self.chain_id,
        }


def read_contract(filename: str) -> str:
    """Return the source of a bundled contract, e.g. ``con_token_locker.py``."""
    source = CONTRACTS / filename
    if not source.is_file():
        raise FileNotFoundError(f"No bundled contract named {filename}.")
    return source.read_text()


def submit_contract(
    client: ContractingClient,
    filename: str,
    name: str | None = None,
    signer: str = "sys",
    constructor_args: dict[str, Any] | None = None,
):
    code = read_contract(filename)
    name = name or PurePosixPath(filename).stem

    if constructor_args:
        client.submit(code, name=name, signer=signer, constructor_args=constructor_args)
    else:
        client.submit(code, name=name, signer=signer)

    logger.info("Submitted %s as %s (signer=%s)", filename, name, signer)
    return client.get_contract(name)


def deploy_locker(
    client: ContractingClient,
    settings: LockerSettings | None = None,
    name: str = LOCKER_CONTRACT,
    signer: str = "sys",
):
    """Submit the locker; the fee token contract must already exist."""
    settings = settings or LockerSettings.from_env()
    locker = submit_contract(
        client,
        f"{LOCKER_CONTRACT}.py",
        name=name,
        signer=signer,
        constructor_args=settings.constructor_args(),
    )
    logger.info(
        "Locker %s deployed: lock_fee=%s vesting_fee=%s receiver=%s fee_token=%s chain=%s",
        name,
        settings.lock_fee,
        settings.vesting_fee,
        settings.fee_receiver,
        settings.fee_token,
        settings.chain_id,
    )
    return locker
