# con_mock_token.py
# XSC001 token that publishes its decimals in `metadata`.
# `transfer_tax` is the share of every transfer that never arrives: 0 is a
# plain token, 0.05 a fee-on-transfer token, 1 burns everything, and a
# negative rate credits more than was sent.
balances = Hash(default_value=decimal('0.0'))
metadata = Hash()

@construct
def seed():
    initial_supply = decimal('1000000')
    balances[ctx.caller] = initial_supply
    metadata['token_name'] = "MOCK LOCK TOKEN"
    metadata['token_symbol'] = "MLT"
    metadata['decimals'] = 6
    metadata['transfer_tax'] = decimal('0')
    metadata['total_supply'] = initial_supply
    metadata['operator'] = ctx.caller

@export
def change_metadata(key: str, value: Any):
    assert ctx.caller == metadata['operator'], 'Only operator can set metadata!'
    metadata[key] = value

def credited(amount: float):
    tax = metadata['transfer_tax']
    if not tax:
        return amount
    return amount * (decimal('1.0') - tax)

@export
def transfer(amount: float, to: str):
    assert amount > decimal('0.0'), 'Cannot transfer zero or negative!'
    sender = ctx.caller
    sender_bal = balances[sender]
    assert sender_bal >= amount, f'Transfer amount exceeds balance for sender {sender}!'

    balances[sender] = sender_bal - amount
    balances[to] += credited(amount)

@export
def approve(amount: float, to: str):
    assert amount >= decimal('0.0'), 'Cannot approve negative!'
    balances[ctx.caller, to] = amount

@export
def transfer_from(amount: float, to: str, main_account: str):
    assert amount > decimal('0.0'), 'Cannot transfer zero or negative!'
    spender = ctx.caller

    allowance = balances[main_account, spender]
    assert allowance >= amount, \
        f'Transfer amount {amount} exceeds allowance {allowance} for {main_account} by spender {spender}!'

    main_account_bal = balances[main_account]
    assert main_account_bal >= amount, f'Transfer amount {amount} exceeds balance {main_account_bal} for main_account {main_account}!'

    balances[main_account, spender] = allowance - amount
    balances[main_account] = main_account_bal - amount
    balances[to] += credited(amount)

@export
def balance_of(address: str):
    return balances[address]
