# con_fee_currency.py
# Stand-in for the native `currency` contract. Transfers to a refusing address
# report failure by returning False instead of reverting.
balances = Hash(default_value=decimal('0.0'))
refusing = Hash(default_value=False)
metadata = Hash()

@construct
def seed():
    initial_supply = decimal('1000000')
    balances[ctx.caller] = initial_supply
    metadata['token_name'] = "FEE CURRENCY"
    metadata['token_symbol'] = "XIAN"
    metadata['total_supply'] = initial_supply
    metadata['operator'] = ctx.caller

@export
def set_refusing(address: str, refuse: bool):
    assert ctx.caller == metadata['operator'], 'Only operator can set refusals!'
    refusing[address] = refuse

@export
def transfer(amount: float, to: str):
    assert amount > decimal('0.0'), 'Cannot transfer zero or negative!'
    if refusing[to]:
        return False

    sender = ctx.caller
    sender_bal = balances[sender]
    assert sender_bal >= amount, f'Transfer amount exceeds balance for sender {sender}!'

    balances[sender] = sender_bal - amount
    balances[to] += amount
    return True

@export
def approve(amount: float, to: str):
    assert amount >= decimal('0.0'), 'Cannot approve negative!'
    balances[ctx.caller, to] = amount
    return True

@export
def transfer_from(amount: float, to: str, main_account: str):
    assert amount > decimal('0.0'), 'Cannot transfer zero or negative!'
    if refusing[to]:
        return False

    spender = ctx.caller
    allowance = balances[main_account, spender]
    assert allowance >= amount, \
        f'Transfer amount {amount} exceeds allowance {allowance} for {main_account} by spender {spender}!'

    main_account_bal = balances[main_account]
    assert main_account_bal >= amount, f'Transfer amount {amount} exceeds balance {main_account_bal} for main_account {main_account}!'

    balances[main_account, spender] = allowance - amount
    balances[main_account] = main_account_bal - amount
    balances[to] += amount
    return True

@export
def balance_of(address: str):
    return balances[address]
