import unittest
from decimal import Decimal

from contracting.stdlib.bridge.decimal import ContractingDecimal

from keep_locker.deploy import LockerSettings, read_contract


class TestLockerSettings(unittest.TestCase):

    def test_defaults(self):
        settings = LockerSettings.from_env({})
        self.assertEqual(settings.lock_fee, Decimal('0.02'))
        self.assertEqual(settings.vesting_fee, Decimal('0.05'))
        self.assertEqual(settings.fee_receiver, 'sys')
        self.assertEqual(settings.fee_token, 'currency')
        self.assertEqual(settings.chain_id, 'xian-network')

    def test_from_env(self):
        settings = LockerSettings.from_env({
            "KEEP_LOCK_FEE": "1.5",
            "KEEP_VESTING_FEE": "0",
            "KEEP_FEE_RECEIVER": "treasury",
            "KEEP_FEE_TOKEN": "con_fee_currency",
            "KEEP_CHAIN_ID": "xian-testnet",
        })
        self.assertEqual(settings.lock_fee, Decimal('1.5'))
        self.assertEqual(settings.vesting_fee, Decimal('0'))
        self.assertEqual(settings.fee_receiver, 'treasury')
        self.assertEqual(settings.fee_token, 'con_fee_currency')
        self.assertEqual(settings.chain_id, 'xian-testnet')

    def test_constructor_args(self):
        args = LockerSettings(lock_fee=Decimal('0.1'), fee_receiver='treasury').constructor_args()
        self.assertIsInstance(args['lock_fee'], ContractingDecimal)
        self.assertEqual(args['lock_fee'], ContractingDecimal('0.1'))
        self.assertEqual(args['vesting_fee'], ContractingDecimal('0.05'))
        self.assertEqual(args['fee_receiver'], 'treasury')
        self.assertEqual(set(args), {'lock_fee', 'vesting_fee', 'fee_receiver', 'fee_token', 'chain_id'})

    def test_invalid_settings(self):
        with self.assertRaisesRegex(ValueError, "negative"):
            LockerSettings(lock_fee=Decimal('-1')).constructor_args()
        with self.assertRaisesRegex(ValueError, "negative"):
            LockerSettings(vesting_fee=Decimal('-0.01')).constructor_args()
        with self.assertRaisesRegex(ValueError, "receiver"):
            LockerSettings(fee_receiver='').constructor_args()


class TestBundledContracts(unittest.TestCase):

    def test_contracts_ship_with_the_package(self):
        for filename in ("con_token_locker.py", "con_fee_currency.py", "con_mock_token.py", "con_malicious_reentrant_token.py"):
            self.assertIn("@export", read_contract(filename))
        self.assertIn("def lock_token(", read_contract("con_token_locker.py"))

    def test_unknown_contract(self):
        with self.assertRaises(FileNotFoundError):
            read_contract("con_missing.py")


if __name__ == '__main__':
    unittest.main()
