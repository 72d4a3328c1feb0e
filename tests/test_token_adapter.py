from contracting.stdlib.bridge.decimal import ContractingDecimal as decimal

from locker_case import LockerTestCase


class TestTokenTransferAdapter(LockerTestCase):

    def test_decimals_probe(self):
        print("\n--- Test: Decimals Probe ---")
        self.assertEqual(self.locker.locks[self._lock()]['decimals'], 6)

        self.con_token.change_metadata(key='decimals', value='six', signer=self.operator)
        self.assertEqual(self.locker.locks[self._lock()]['decimals'], 18)

        self.con_token.change_metadata(key='decimals', value=300, signer=self.operator)
        self.assertEqual(self.locker.locks[self._lock()]['decimals'], 18)

        self.con_token.change_metadata(key='decimals', value=True, signer=self.operator)
        self.assertEqual(self.locker.locks[self._lock()]['decimals'], 18)

        self.con_token.change_metadata(key='decimals', value=0, signer=self.operator)
        self.assertEqual(self.locker.locks[self._lock()]['decimals'], 0)

        self.con_token.change_metadata(key='decimals', value=None, signer=self.operator)
        self.assertEqual(self.locker.locks[self._lock()]['decimals'], 18)

    def test_no_tokens_received(self):
        print("\n--- Test: No Tokens Received ---")
        # Every unit sent is taxed away
        self.con_token.change_metadata(key='transfer_tax', value=decimal('1'), signer=self.operator)

        with self.assertRaisesRegex(AssertionError, "No tokens received"):
            self._lock()

        with self.assertRaisesRegex(AssertionError, "No tokens received"):
            self._vest(amount=decimal('10'))

        # Rolled back, including the burn and the fee
        self.assertEqual(self.con_token.balance_of(address=self.alice), decimal('1000'))
        self.assertEqual(self.con_currency.balance_of(address=self.alice), decimal('10'))
        self.assertEqual(self.locker.next_lock_id.get(), 0)

    def test_pull_failure_aborts(self):
        print("\n--- Test: Pull Failure Aborts ---")
        with self.assertRaisesRegex(AssertionError, "exceeds allowance"):
            self._lock(amount=decimal('5000'))

        self.con_token.approve(amount=decimal('5000'), to=self.locker_name, signer=self.alice)
        with self.assertRaisesRegex(AssertionError, "exceeds balance"):
            self._lock(amount=decimal('5000'))

        self.assertEqual(self.locker.get_user_lock_count(owner=self.alice), 0)

    def test_push_failure_aborts_withdrawal(self):
        print("\n--- Test: Push Failure Aborts Withdrawal ---")
        # The fee currency doubles as a lockable token
        self.con_currency.approve(amount=decimal('10'), to=self.locker_name, signer=self.bob)
        lock_id = self.locker.lock_token(
            token=self.currency_name, amount=decimal('5'),
            unlock_time=self._get_future_time(self.base_time, hours=1),
            fee_payment=decimal('0.02'), signer=self.bob, environment={"now": self.base_time}
        )
        self.assertEqual(self.locker.locks[lock_id]['amount'], decimal('5'))

        self.con_currency.set_refusing(address=self.bob, refuse=True, signer=self.operator)
        after_unlock = self._get_future_time(self.base_time, hours=2)
        with self.assertRaisesRegex(AssertionError, "Token transfer failed"):
            self.locker.withdraw_lock(lock_id=lock_id, signer=self.bob, environment={"now": after_unlock})

        lock = self.locker.locks[lock_id]
        self.assertFalse(lock['withdrawn'])
        self.assertEqual(lock['amount'], decimal('5'))

        self.con_currency.set_refusing(address=self.bob, refuse=False, signer=self.operator)
        self.locker.withdraw_lock(lock_id=lock_id, signer=self.bob, environment={"now": after_unlock})
        self.assertEqual(self.con_currency.balance_of(address=self.bob), decimal('10') - decimal('0.02'))

    def test_non_compliant_token_rejected(self):
        print("\n--- Test: Non-Compliant Token Rejected ---")
        code = "@export\ndef ping():\n    return 'pong'\n"
        self.client.submit(code, name='con_not_a_token', signer=self.operator)

        with self.assertRaisesRegex(AssertionError, "Token not XSC001-compliant"):
            self._lock(token='con_not_a_token')

    def test_received_amount_overflow(self):
        print("\n--- Test: Received Amount Overflow ---")
        # A token that credits far more than it debits
        self.con_token.change_metadata(
            key='transfer_tax', value=decimal('-100000000000000000000000000'), signer=self.operator
        )

        with self.assertRaisesRegex(AssertionError, "Amount overflow"):
            self._lock(amount=decimal('1000'))

        with self.assertRaisesRegex(AssertionError, "Amount overflow"):
            self._vest(amount=decimal('1000'))

        self.assertEqual(self.con_token.balance_of(address=self.locker_name), decimal('0'))
        self.assertEqual(self.con_token.balance_of(address=self.alice), decimal('1000'))
        self.assertEqual(self.locker.next_lock_id.get(), 0)
        self.assertEqual(self.locker.next_vesting_id.get(), 0)

    def test_vesting_declared_amount_overflow(self):
        with self.assertRaisesRegex(AssertionError, "Amount overflow"):
            self._vest(amount=decimal(str(2 ** 96)))

        # The ceiling itself is accepted by validation and fails only on the pull
        with self.assertRaisesRegex(AssertionError, "exceeds allowance"):
            self._vest(amount=decimal(str(2 ** 96 - 1)))
