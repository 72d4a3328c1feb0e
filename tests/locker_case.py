import unittest
from decimal import Decimal

from contracting.stdlib.bridge.decimal import ContractingDecimal as decimal
from contracting.stdlib.bridge.time import Datetime, Timedelta
from contracting.client import ContractingClient

from keep_locker.deploy import LockerSettings, deploy_locker, submit_contract


class LockerTestCase(unittest.TestCase):
    """Fresh client with the locker, a fee currency and the mock tokens submitted."""

    def setUp(self):
        self.client = ContractingClient()
        self.client.flush()

        self.operator = 'sys'
        self.alice = 'alice'
        self.bob = 'bob'
        self.charlie = 'charlie'
        self.treasury = 'treasury'

        self.locker_name = "con_token_locker"
        self.currency_name = "con_fee_currency"
        self.token_name = "con_mock_token"
        self.malicious_token_name = "con_malicious_reentrant_token"
        self.chain_id = 'xian-testnet'

        self.lock_fee = decimal('0.02')
        self.vesting_fee = decimal('0.05')

        self.con_currency = submit_contract(self.client, "con_fee_currency.py", signer=self.operator)
        self.con_token = submit_contract(self.client, "con_mock_token.py", signer=self.operator)
        self.con_malicious_token = submit_contract(self.client, "con_malicious_reentrant_token.py", signer=self.operator)

        self.settings = LockerSettings(
            lock_fee=Decimal('0.02'),
            vesting_fee=Decimal('0.05'),
            fee_receiver=self.treasury,
            fee_token=self.currency_name,
            chain_id=self.chain_id,
        )
        self.locker = deploy_locker(self.client, self.settings, name=self.locker_name, signer=self.operator)

        for user in (self.alice, self.bob, self.charlie):
            self.con_currency.transfer(amount=decimal('10'), to=user, signer=self.operator)
            self.con_currency.approve(amount=decimal('10'), to=self.locker_name, signer=user)
            self.con_token.transfer(amount=decimal('1000'), to=user, signer=self.operator)
            self.con_token.approve(amount=decimal('1000'), to=self.locker_name, signer=user)

        self.base_time = Datetime(year=2024, month=1, day=1, hour=0, minute=0, second=0)

    def tearDown(self):
        self.client.flush()

    def _get_future_time(self, base_dt: Datetime, days=0, hours=0, minutes=0, seconds=0) -> Datetime:
        delta = Timedelta(days=days, hours=hours, minutes=minutes, seconds=seconds)
        return base_dt + delta

    def _lock(self, amount=None, unlock_time=None, signer=None, token=None, now=None):
        return self.locker.lock_token(
            token=token or self.token_name,
            amount=amount if amount is not None else decimal('100'),
            unlock_time=unlock_time or self._get_future_time(self.base_time, hours=1),
            fee_payment=self.lock_fee,
            signer=signer or self.alice,
            environment={"now": now or self.base_time}
        )

    def _vest(self, amount=None, cliff_seconds=0, duration_seconds=1000, signer=None, token=None, now=None):
        return self.locker.create_vesting(
            token=token or self.token_name,
            amount=amount if amount is not None else decimal('1000'),
            cliff_seconds=cliff_seconds,
            duration_seconds=duration_seconds,
            fee_payment=self.vesting_fee,
            signer=signer or self.alice,
            environment={"now": now or self.base_time}
        )
