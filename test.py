import unittest

from contracting.stdlib.bridge.decimal import ContractingDecimal as decimal

from locker_case import LockerTestCase


def event_names(output):
    return [event['event'] for event in output['events']]


class TestTokenLockerContract(LockerTestCase):

    def _make_taxed(self):
        # 5% of every transfer never arrives, and no decimals are published
        self.con_token.change_metadata(key='transfer_tax', value=decimal('0.05'), signer=self.operator)
        self.con_token.change_metadata(key='decimals', value=None, signer=self.operator)

    def test_lock_and_withdraw_after_deadline(self):
        print("\n--- Test: Lock, wait, withdraw once ---")
        unlock_time = self._get_future_time(self.base_time, seconds=3600)

        lock_id = self._lock(decimal('100'), unlock_time, self.alice)
        self.assertEqual(lock_id, 0)
        self.assertEqual(self.con_token.balance_of(address=self.alice), decimal('900'))
        self.assertEqual(self.con_token.balance_of(address=self.locker_name), decimal('100'))

        lock = self.locker.locks[lock_id]
        self.assertEqual(lock['owner'], self.alice)
        self.assertEqual(lock['amount'], decimal('100'))
        self.assertEqual(lock['unlock_time'], unlock_time)
        self.assertEqual(lock['decimals'], 6)
        self.assertFalse(lock['withdrawn'])

        with self.assertRaisesRegex(AssertionError, "Still locked"):
            self.locker.withdraw_lock(
                lock_id=lock_id, signer=self.alice,
                environment={"now": self._get_future_time(self.base_time, seconds=3599)}
            )

        self.locker.withdraw_lock(
            lock_id=lock_id, signer=self.alice,
            environment={"now": self._get_future_time(self.base_time, seconds=3601)}
        )
        self.assertEqual(self.con_token.balance_of(address=self.alice), decimal('1000'))
        self.assertEqual(self.con_token.balance_of(address=self.locker_name), decimal('0'))

        lock = self.locker.locks[lock_id]
        self.assertTrue(lock['withdrawn'])
        self.assertEqual(lock['amount'], decimal('0'))

        with self.assertRaisesRegex(AssertionError, "Already withdrawn"):
            self.locker.withdraw_lock(
                lock_id=lock_id, signer=self.alice,
                environment={"now": self._get_future_time(self.base_time, seconds=3700)}
            )

    def test_lock_collects_fee_for_receiver(self):
        print("\n--- Test: Lock fee reaches the fee receiver ---")
        self._lock(decimal('100'), self._get_future_time(self.base_time, days=1), self.alice)
        self.assertEqual(self.con_currency.balance_of(address=self.treasury), self.lock_fee)
        self.assertEqual(self.con_currency.balance_of(address=self.alice), decimal('10') - self.lock_fee)
        self.assertEqual(self.con_currency.balance_of(address=self.locker_name), decimal('0'))

    def test_vesting_linear_claims(self):
        print("\n--- Test: Vesting total=1000, cliff=0, duration=1000 ---")
        vesting_id = self.locker.create_vesting(
            token=self.token_name, amount=decimal('1000'), cliff_seconds=0, duration_seconds=1000,
            fee_payment=self.vesting_fee, signer=self.alice, environment={"now": self.base_time}
        )
        self.assertEqual(vesting_id, 0)
        self.assertEqual(self.con_currency.balance_of(address=self.treasury), self.vesting_fee)

        halfway = self._get_future_time(self.base_time, seconds=500)
        self.assertEqual(self.locker.get_claimable(vesting_id=vesting_id, environment={"now": halfway}), decimal('500'))

        output = self.locker.claim_vesting(
            vesting_id=vesting_id, signer=self.alice, environment={"now": halfway}, return_full_output=True
        )
        self.assertEqual(output['result'], decimal('500'))
        self.assertNotIn('VestingCompleted', event_names(output))
        self.assertEqual(self.locker.vestings[vesting_id]['claimed_amount'], decimal('500'))
        self.assertEqual(self.con_token.balance_of(address=self.alice), decimal('500'))

        end = self._get_future_time(self.base_time, seconds=1000)
        self.assertEqual(self.locker.get_claimable(vesting_id=vesting_id, environment={"now": end}), decimal('500'))

        output = self.locker.claim_vesting(
            vesting_id=vesting_id, signer=self.alice, environment={"now": end}, return_full_output=True
        )
        self.assertEqual(output['result'], decimal('500'))
        self.assertEqual(event_names(output).count('VestingCompleted'), 1)

        schedule = self.locker.vestings[vesting_id]
        self.assertEqual(schedule['claimed_amount'], decimal('1000'))
        self.assertEqual(schedule['claimed_amount'], schedule['total_amount'])
        self.assertEqual(self.con_token.balance_of(address=self.alice), decimal('1000'))

        # Record is kept, further claims fail
        with self.assertRaisesRegex(AssertionError, "Already fully claimed"):
            self.locker.claim_vesting(
                vesting_id=vesting_id, signer=self.alice,
                environment={"now": self._get_future_time(end, days=1)}
            )

    def test_transferred_lock_only_new_owner_withdraws(self):
        print("\n--- Test: Lock, extend, transfer, withdraw by new owner ---")
        initial_unlock_time = self._get_future_time(self.base_time, seconds=3600)
        lock_id = self._lock(decimal('100'), initial_unlock_time, self.alice)

        new_unlock_time = self._get_future_time(initial_unlock_time, seconds=3600)
        self.locker.extend_lock(
            lock_id=lock_id, new_unlock_time=new_unlock_time, signer=self.alice,
            environment={"now": self.base_time}
        )
        self.assertEqual(self.locker.locks[lock_id]['unlock_time'], new_unlock_time)

        self.locker.transfer_lock_ownership(
            lock_id=lock_id, new_owner=self.bob, signer=self.alice,
            environment={"now": self.base_time}
        )
        self.assertEqual(self.locker.locks[lock_id]['owner'], self.bob)
        self.assertEqual(self.locker.get_user_locks(owner=self.alice), [])
        self.assertEqual(self.locker.get_user_locks(owner=self.bob), [lock_id])

        after_unlock = self._get_future_time(self.base_time, seconds=7300)
        with self.assertRaisesRegex(AssertionError, "Not owner"):
            self.locker.withdraw_lock(lock_id=lock_id, signer=self.alice, environment={"now": after_unlock})

        self.locker.withdraw_lock(lock_id=lock_id, signer=self.bob, environment={"now": after_unlock})
        self.assertEqual(self.con_token.balance_of(address=self.bob), decimal('1100'))
        self.assertEqual(self.con_token.balance_of(address=self.alice), decimal('900'))

    def test_fee_on_transfer_token_records_received_amount(self):
        print("\n--- Test: Taxable token lock stores the balance delta ---")
        self._make_taxed()

        unlock_time = self._get_future_time(self.base_time, hours=1)
        lock_id = self._lock(decimal('100'), unlock_time, self.alice)
        self.assertEqual(self.con_token.balance_of(address=self.alice), decimal('900'))

        lock = self.locker.locks[lock_id]
        self.assertEqual(lock['amount'], decimal('95')) # Declared 100, 5% taxed on the way in
        self.assertEqual(lock['decimals'], 18) # No decimals published
        self.assertEqual(self.con_token.balance_of(address=self.locker_name), lock['amount'])

        self.locker.withdraw_lock(
            lock_id=lock_id, signer=self.alice,
            environment={"now": self._get_future_time(unlock_time, seconds=1)}
        )
        # The payout is taxed as well: 900 + 95 * 0.95
        self.assertEqual(self.con_token.balance_of(address=self.alice), decimal('990.25'))
        self.assertEqual(self.con_token.balance_of(address=self.locker_name), decimal('0'))

    def test_taxable_vesting_completes_without_dust(self):
        print("\n--- Test: Taxable vesting pays out exactly what it holds ---")
        self._make_taxed()
        vesting_id = self.locker.create_vesting(
            token=self.token_name, amount=decimal('100'), cliff_seconds=0, duration_seconds=7,
            fee_payment=self.vesting_fee, signer=self.alice, environment={"now": self.base_time}
        )
        self.assertEqual(self.locker.vestings[vesting_id]['total_amount'], decimal('95'))

        for second in (1, 3, 6, 9):
            self.locker.claim_vesting(
                vesting_id=vesting_id, signer=self.alice,
                environment={"now": self._get_future_time(self.base_time, seconds=second)}
            )

        schedule = self.locker.vestings[vesting_id]
        self.assertEqual(schedule['claimed_amount'], decimal('95'))
        self.assertEqual(self.con_token.balance_of(address=self.locker_name), decimal('0'))

    def test_lock_emits_locked_event(self):
        print("\n--- Test: Locked event ---")
        output = self.locker.lock_token(
            token=self.token_name, amount=decimal('25'),
            unlock_time=self._get_future_time(self.base_time, days=2),
            fee_payment=self.lock_fee, signer=self.alice,
            environment={"now": self.base_time}, return_full_output=True
        )
        self.assertEqual(output['result'], 0)
        self.assertEqual(event_names(output), ['Locked'])

    def test_read_surface(self):
        print("\n--- Test: Read operations ---")
        self._lock(decimal('10'), self._get_future_time(self.base_time, days=1), self.alice)
        self._lock(decimal('20'), self._get_future_time(self.base_time, days=2), self.alice)

        self.assertEqual(self.locker.get_user_lock_count(owner=self.alice), 2)
        self.assertEqual(self.locker.get_user_locks(owner=self.alice), [0, 1])
        self.assertEqual(self.locker.get_lock(lock_id=1)['amount'], decimal('20'))
        self.assertIsNone(self.locker.get_lock(lock_id=7))
        self.assertEqual(self.locker.get_user_vestings(owner=self.alice), [])
        self.assertEqual(self.locker.get_user_vesting_count(owner=self.alice), 0)

        fees = self.locker.get_fees()
        self.assertEqual(fees['lock_fee'], self.lock_fee)
        self.assertEqual(fees['vesting_fee'], self.vesting_fee)
        self.assertEqual(fees['fee_receiver'], self.treasury)
        self.assertEqual(fees['fee_token'], self.currency_name)
        self.assertEqual(fees['chain_id'], 'xian-testnet')


if __name__ == '__main__':
    unittest.main()
