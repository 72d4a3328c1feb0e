# con_malicious_reentrant_token.py
I = importlib # Make sure importlib is available if used via I

balances = Hash(default_value=decimal('0.0'))
metadata = Hash()

re_entry_owner = Variable() # To control sensitive operations

# Re-entrancy specific state
re_entry_target_locker = Variable()
re_entry_action = Variable() # 'lock' re-enters from transfer_from, 'withdraw' / 'claim' from transfer
re_entry_record_id = Variable()
re_entry_amount = Variable()
re_entry_unlock_time = Variable()
re_entry_attempt_count = Variable()
re_entry_max_attempts = Variable() # To prevent infinite loops in complex scenarios

@construct
def seed():
    re_entry_attempt_count.set(0)
    re_entry_max_attempts.set(1) # Only re-enter once for this test
    re_entry_owner.set(ctx.caller) # Set owner
    metadata['token_name'] = "MALICIOUS REENTRANT TOKEN"
    metadata['token_symbol'] = "MRT"

@export
def configure_re_entrancy(locker_name: str, action: str, record_id: int, amount: float, unlock_time: datetime.datetime):
    assert ctx.caller == re_entry_owner.get(), "Only owner can configure re-entrancy."
    re_entry_target_locker.set(locker_name)
    re_entry_action.set(action)
    re_entry_record_id.set(record_id)
    re_entry_amount.set(amount)
    re_entry_unlock_time.set(unlock_time)
    re_entry_attempt_count.set(0) # Reset attempt count for this re-entrancy path

    # The token approves the locker for its own balance so a re-entrant lock can pull it
    if amount > 0 and locker_name:
        balances[ctx.this, locker_name] = amount

@export
def mint(amount: float, to: str):
    # Simplified mint, assumes caller is authorized
    assert amount > 0, "Mint amount must be positive"
    balances[to] += amount

def re_enter(expected_action: str):
    current_attempts = re_entry_attempt_count.get()
    target_locker = re_entry_target_locker.get()

    if not target_locker or current_attempts >= re_entry_max_attempts.get():
        return
    if re_entry_action.get() != expected_action:
        return

    re_entry_attempt_count.set(current_attempts + 1)
    locker = I.import_module(target_locker)

    # ctx.caller for the re-entrant call will be this malicious token contract
    if expected_action == 'lock':
        locker.lock_token(
            token=ctx.this,
            amount=re_entry_amount.get(),
            unlock_time=re_entry_unlock_time.get(),
            fee_payment=decimal('0')
        )
    elif expected_action == 'withdraw':
        locker.withdraw_lock(lock_id=re_entry_record_id.get())
    elif expected_action == 'claim':
        locker.claim_vesting(vesting_id=re_entry_record_id.get())

@export
def transfer(amount: float, to: str):
    assert amount > 0, "Transfer amount must be positive"
    # sender is the locker when it pays out a withdrawal or claim
    sender = ctx.caller

    sender_bal = balances[sender]
    assert sender_bal >= amount, f"Insufficient balance for sender {sender}"

    balances[sender] = sender_bal - amount
    balances[to] += amount

    # --- RE-ENTRANCY LOGIC FOR PAYOUTS ---
    if sender == re_entry_target_locker.get():
        re_enter('withdraw')
        re_enter('claim')

    return True

@export
def approve(amount: float, to: str):
    assert amount >= 0, "Approve amount must be non-negative"
    balances[ctx.caller, to] = amount
    return True

@export
def transfer_from(amount: float, to: str, main_account: str):
    assert amount > 0, "Transfer amount must be positive"
    spender = ctx.caller # This is the locker in the scenario

    owner_balance = balances[main_account]
    assert owner_balance >= amount, f"Insufficient balance for owner {main_account}"

    spender_allowance = balances[main_account, spender]
    assert spender_allowance >= amount, f"Insufficient allowance for spender {spender} from owner {main_account}"

    # Perform the transfer
    balances[main_account] = owner_balance - amount
    balances[main_account, spender] = spender_allowance - amount
    balances[to] += amount

    # --- RE-ENTRANCY LOGIC FOR DEPOSITS ---
    re_enter('lock')

    return True

@export
def balance_of(address: str):
    return balances[address]
