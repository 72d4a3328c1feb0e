I = importlib

locks = Hash() # lock_id -> {"id", "token", "decimals", "owner", "amount", "unlock_time", "withdrawn"}
vestings = Hash() # vesting_id -> {"id", "token", "decimals", "owner", "total_amount", "claimed_amount", "start_time", "cliff_duration", "duration"}
metadata = Hash()

# Owner index: (owner, slot) -> id, owner -> number of slots, id -> slot
user_lock_ids = Hash()
user_lock_count = Hash(default_value=0)
lock_position = Hash()
user_vesting_ids = Hash()
user_vesting_count = Hash(default_value=0)
vesting_position = Hash()

next_lock_id = Variable()
next_vesting_id = Variable()

reentrancyGuardActive = Variable(default_value=False)

MAX_UINT96 = 2 ** 96 - 1
MAX_UINT32 = 2 ** 32 - 1
MAX_TIMESTAMP = datetime.datetime(year=2106, month=2, day=7, hour=6, minute=28, second=15) # 2**32 - 1 seconds after epoch
EPOCH = datetime.datetime(year=1970, month=1, day=1)
MAX_LOCK_PERIOD = datetime.DAYS * 36500 # 100 years
MAX_CLIFF_SECONDS = 3650 * 24 * 60 * 60 # 10 years
DEFAULT_DECIMALS = 18
AMOUNT_SCALE = 10 ** 30 # contracting decimals carry 30 fractional digits

# Standard XSC001 (Fungible Token) interface
token_interface = [
    I.Func('transfer_from', args=('amount', 'to', 'main_account')),
    I.Func('transfer', args=('amount', 'to')),
    I.Func('balance_of', args=('address',)),
]

# Events
Locked = LogEvent(
    event="Locked",
    params={
        "id": {'type': int, 'idx': True},
        "token": {'type': str, 'idx': True},
        "owner": {'type': str, 'idx': True},
        "amount": {'type': (int, float, decimal)}, # Actual amount received
        "decimals": {'type': int},
        "unlock_time": {'type': str}
    })

LockExtended = LogEvent(
    event="LockExtended",
    params={
        "id": {'type': int, 'idx': True},
        "owner": {'type': str, 'idx': True},
        "old_unlock_time": {'type': str},
        "new_unlock_time": {'type': str}
    })

LockTransferred = LogEvent(
    event="LockTransferred",
    params={
        "id": {'type': int, 'idx': True},
        "previous_owner": {'type': str, 'idx': True},
        "new_owner": {'type': str, 'idx': True},
        "token": {'type': str},
        "amount": {'type': (int, float, decimal)}
    })

LockWithdrawn = LogEvent(
    event="LockWithdrawn",
    params={
        "id": {'type': int, 'idx': True},
        "token": {'type': str, 'idx': True},
        "owner": {'type': str, 'idx': True},
        "amount": {'type': (int, float, decimal)},
        "withdrawn_at": {'type': str}
    })

VestingCreated = LogEvent(
    event="VestingCreated",
    params={
        "id": {'type': int, 'idx': True},
        "token": {'type': str, 'idx': True},
        "owner": {'type': str, 'idx': True},
        "amount": {'type': (int, float, decimal)},
        "decimals": {'type': int},
        "start_time": {'type': str},
        "cliff_duration": {'type': int},
        "duration": {'type': int}
    })

VestingClaimed = LogEvent(
    event="VestingClaimed",
    params={
        "id": {'type': int, 'idx': True},
        "token": {'type': str, 'idx': True},
        "owner": {'type': str, 'idx': True},
        "amount": {'type': (int, float, decimal)},
        "claimed_amount": {'type': (int, float, decimal)},
        "total_amount": {'type': (int, float, decimal)}
    })

VestingTransferred = LogEvent(
    event="VestingTransferred",
    params={
        "id": {'type': int, 'idx': True},
        "previous_owner": {'type': str, 'idx': True},
        "new_owner": {'type': str, 'idx': True},
        "token": {'type': str},
        "remaining_amount": {'type': (int, float, decimal)}
    })

VestingCompleted = LogEvent(
    event="VestingCompleted",
    params={
        "id": {'type': int, 'idx': True},
        "token": {'type': str, 'idx': True},
        "owner": {'type': str, 'idx': True},
        "total_amount": {'type': (int, float, decimal)}
    })

FeeTransferFailed = LogEvent(
    event="FeeTransferFailed",
    params={
        "payer": {'type': str, 'idx': True},
        "receiver": {'type': str, 'idx': True},
        "amount": {'type': (int, float, decimal)} # Excess kept by the fee receiver
    })

@construct
def seed(lock_fee: float, vesting_fee: float, fee_receiver: str, fee_token: str, chain_id: str):
    assert fee_receiver, 'Invalid fee receiver'
    assert lock_fee >= 0 and vesting_fee >= 0, 'Fees cannot be negative'
    assert I.enforce_interface(I.import_module(fee_token), token_interface), 'Fee token not XSC001-compliant'

    # Fixed at construction, there is no exported setter
    metadata['lock_fee'] = lock_fee
    metadata['vesting_fee'] = vesting_fee
    metadata['fee_receiver'] = fee_receiver
    metadata['fee_token'] = fee_token
    metadata['chain_id'] = chain_id

    next_lock_id.set(0)
    next_vesting_id.set(0)
    reentrancyGuardActive.set(False)

# --- Reentrancy guard ---
# A failing call reverts every write, the flag included.
def enter_guard():
    assert not reentrancyGuardActive.get(), 'Reentrant call'
    reentrancyGuardActive.set(True)

def exit_guard():
    reentrancyGuardActive.set(False)

# --- Fee gate ---
def collect_fee(required_fee: float, fee_payment: float):
    assert fee_payment >= required_fee, 'Insufficient fee'
    if fee_payment <= 0:
        return False

    fee_token = I.import_module(metadata['fee_token'])
    receiver = metadata['fee_receiver']

    # The payment is attached in full, then split into fee and excess
    pulled = fee_token.transfer_from(amount=fee_payment, to=ctx.this, main_account=ctx.caller)
    assert pulled is not False, 'Fee transfer failed'

    if required_fee > 0:
        forwarded = fee_token.transfer(amount=required_fee, to=receiver)
        assert forwarded is not False, 'Fee transfer failed'

    excess = fee_payment - required_fee
    if excess <= 0:
        return False

    refunded = fee_token.transfer(amount=excess, to=ctx.caller)
    if refunded is False:
        kept = fee_token.transfer(amount=excess, to=receiver)
        assert kept is not False, 'Fee transfer failed'
        FeeTransferFailed({"payer": ctx.caller, "receiver": receiver, "amount": excess})
    return True

# --- Token transfer adapter ---
def load_token(token: str):
    assert token, 'Invalid token'
    token_contract = I.import_module(token)
    assert I.enforce_interface(token_contract, token_interface), 'Token not XSC001-compliant'
    return token_contract

def pull_exact(token_contract: Any, amount: float):
    balance_before = token_contract.balance_of(address=ctx.this)
    if balance_before is None:
        balance_before = decimal('0')

    pulled = token_contract.transfer_from(amount=amount, to=ctx.this, main_account=ctx.caller)
    assert pulled is not False, 'Token transfer failed'

    balance_after = token_contract.balance_of(address=ctx.this)
    if balance_after is None:
        balance_after = decimal('0')

    # Fee-on-transfer tokens deliver less than declared
    received = balance_after - balance_before
    assert received > 0, 'No tokens received'
    assert received <= MAX_UINT96, 'Amount overflow'
    return received

def push_exact(token_contract: Any, to: str, amount: float):
    pushed = token_contract.transfer(amount=amount, to=to)
    assert pushed is not False, 'Token transfer failed'

def probe_decimals(token: str):
    token_metadata = ForeignHash(foreign_contract=token, foreign_name='metadata')
    value = token_metadata['decimals']
    if isinstance(value, bool) or not isinstance(value, int):
        return DEFAULT_DECIMALS
    if value < 0 or value > 255:
        return DEFAULT_DECIMALS
    return value

# --- Owner index ---
def index_add(entries, sizes, slots, owner: str, record_id: int):
    size = sizes[owner]
    entries[owner, size] = record_id
    slots[record_id] = size
    sizes[owner] = size + 1

def index_remove(entries, sizes, slots, owner: str, record_id: int):
    size = sizes[owner]
    slot = slots[record_id]
    assert size > 0, 'Index mismatch'
    assert slot is not None and slot < size, 'Index mismatch'
    assert entries[owner, slot] == record_id, 'Index mismatch'

    last = size - 1
    if slot != last:
        moved_id = entries[owner, last]
        entries[owner, slot] = moved_id
        slots[moved_id] = slot

    entries[owner, last] = None
    slots[record_id] = None
    sizes[owner] = last

def index_list(entries, sizes, owner: str):
    return [entries[owner, slot] for slot in range(sizes[owner])]

# --- Validation helpers ---
def check_amount(amount: float):
    assert amount > 0, 'Amount must be positive'
    assert amount <= MAX_UINT96, 'Amount overflow'

def check_owner(record: dict):
    assert record['owner'] == ctx.caller, 'Not owner'

# --- Time locks ---
@export
def lock_token(token: str, amount: float, unlock_time: datetime.datetime, fee_payment: float):
    enter_guard()

    token_contract = load_token(token)
    check_amount(amount)
    assert unlock_time <= MAX_TIMESTAMP, 'Date overflow'
    assert unlock_time > now, 'Unlock time must be in the future'
    assert unlock_time <= now + MAX_LOCK_PERIOD, 'Unlock time too far'

    collect_fee(metadata['lock_fee'], fee_payment)
    received = pull_exact(token_contract, amount)
    token_decimals = probe_decimals(token)

    lock_id = next_lock_id.get()
    next_lock_id.set(lock_id + 1)

    locks[lock_id] = {
        "id": lock_id,
        "token": token,
        "decimals": token_decimals,
        "owner": ctx.caller,
        "amount": received,
        "unlock_time": unlock_time,
        "withdrawn": False
    }
    index_add(user_lock_ids, user_lock_count, lock_position, ctx.caller, lock_id)

    Locked({
        "id": lock_id,
        "token": token,
        "owner": ctx.caller,
        "amount": received,
        "decimals": token_decimals,
        "unlock_time": str(unlock_time)
    })

    exit_guard()
    return lock_id

@export
def extend_lock(lock_id: int, new_unlock_time: datetime.datetime):
    enter_guard()

    lock = locks[lock_id]
    assert lock, 'Lock does not exist'
    check_owner(lock)
    assert not lock['withdrawn'], 'Already withdrawn'
    assert new_unlock_time > lock['unlock_time'], 'Time must increase'
    assert new_unlock_time <= MAX_TIMESTAMP, 'Date overflow'

    old_unlock_time = lock['unlock_time']
    lock['unlock_time'] = new_unlock_time
    locks[lock_id] = lock

    LockExtended({
        "id": lock_id,
        "owner": ctx.caller,
        "old_unlock_time": str(old_unlock_time),
        "new_unlock_time": str(new_unlock_time)
    })

    exit_guard()

@export
def transfer_lock_ownership(lock_id: int, new_owner: str):
    enter_guard()

    lock = locks[lock_id]
    assert lock, 'Lock does not exist'
    check_owner(lock)
    assert not lock['withdrawn'], 'Already withdrawn'
    assert new_owner, 'Invalid owner'

    previous_owner = lock['owner']
    index_remove(user_lock_ids, user_lock_count, lock_position, previous_owner, lock_id)
    index_add(user_lock_ids, user_lock_count, lock_position, new_owner, lock_id)
    lock['owner'] = new_owner
    locks[lock_id] = lock

    LockTransferred({
        "id": lock_id,
        "previous_owner": previous_owner,
        "new_owner": new_owner,
        "token": lock['token'],
        "amount": lock['amount']
    })

    exit_guard()

@export
def withdraw_lock(lock_id: int):
    enter_guard()

    lock = locks[lock_id]
    assert lock, 'Lock does not exist'
    check_owner(lock)
    assert not lock['withdrawn'], 'Already withdrawn'
    assert now >= lock['unlock_time'], 'Still locked'

    # --- EFFECTS ---
    amount = lock['amount']
    lock['withdrawn'] = True
    lock['amount'] = decimal('0')
    locks[lock_id] = lock

    # --- INTERACTION ---
    push_exact(I.import_module(lock['token']), ctx.caller, amount)

    LockWithdrawn({
        "id": lock_id,
        "token": lock['token'],
        "owner": ctx.caller,
        "amount": amount,
        "withdrawn_at": str(now)
    })

    exit_guard()

# --- Vesting ---
def cliff_end(schedule: dict):
    return schedule['start_time'] + datetime.SECONDS * schedule['cliff_duration']

def vested_amount(schedule: dict):
    # Callers make sure the cliff has passed
    elapsed = int((now - cliff_end(schedule)).seconds)
    total = schedule['total_amount']
    duration = schedule['duration']

    if elapsed >= duration:
        return total

    # total * elapsed can leave the decimal range, the remainder product cannot
    return (total // duration) * elapsed + (total % duration) * elapsed / duration

@export
def create_vesting(token: str, amount: float, cliff_seconds: int, duration_seconds: int, fee_payment: float):
    enter_guard()

    token_contract = load_token(token)
    check_amount(amount)
    assert duration_seconds > 0, 'Duration must be positive'
    assert duration_seconds <= MAX_UINT32, 'Date overflow'
    assert cliff_seconds >= 0, 'Invalid cliff'
    assert cliff_seconds <= MAX_CLIFF_SECONDS, 'Cliff too long'

    collect_fee(metadata['vesting_fee'], fee_payment)
    received = pull_exact(token_contract, amount)
    token_decimals = probe_decimals(token)

    vesting_id = next_vesting_id.get()
    next_vesting_id.set(vesting_id + 1)

    vestings[vesting_id] = {
        "id": vesting_id,
        "token": token,
        "decimals": token_decimals,
        "owner": ctx.caller,
        "total_amount": received,
        "claimed_amount": decimal('0'),
        "start_time": now,
        "cliff_duration": cliff_seconds,
        "duration": duration_seconds
    }
    index_add(user_vesting_ids, user_vesting_count, vesting_position, ctx.caller, vesting_id)

    VestingCreated({
        "id": vesting_id,
        "token": token,
        "owner": ctx.caller,
        "amount": received,
        "decimals": token_decimals,
        "start_time": str(now),
        "cliff_duration": cliff_seconds,
        "duration": duration_seconds
    })

    exit_guard()
    return vesting_id

@export
def claim_vesting(vesting_id: int):
    enter_guard()

    schedule = vestings[vesting_id]
    assert schedule, 'Vesting does not exist'
    check_owner(schedule)
    assert schedule['claimed_amount'] < schedule['total_amount'], 'Already fully claimed'
    assert now >= cliff_end(schedule), 'Cliff not reached'

    claimable = vested_amount(schedule) - schedule['claimed_amount']
    assert claimable > 0, 'Nothing to claim'

    # --- EFFECTS ---
    schedule['claimed_amount'] += claimable
    vestings[vesting_id] = schedule

    # --- INTERACTION ---
    push_exact(I.import_module(schedule['token']), ctx.caller, claimable)

    VestingClaimed({
        "id": vesting_id,
        "token": schedule['token'],
        "owner": ctx.caller,
        "amount": claimable,
        "claimed_amount": schedule['claimed_amount'],
        "total_amount": schedule['total_amount']
    })

    if schedule['claimed_amount'] == schedule['total_amount']:
        VestingCompleted({
            "id": vesting_id,
            "token": schedule['token'],
            "owner": ctx.caller,
            "total_amount": schedule['total_amount']
        })

    exit_guard()
    return claimable

@export
def transfer_vesting_ownership(vesting_id: int, new_owner: str):
    enter_guard()

    schedule = vestings[vesting_id]
    assert schedule, 'Vesting does not exist'
    check_owner(schedule)
    assert new_owner, 'Invalid owner'
    assert schedule['claimed_amount'] < schedule['total_amount'], 'Already fully claimed'

    previous_owner = schedule['owner']
    index_remove(user_vesting_ids, user_vesting_count, vesting_position, previous_owner, vesting_id)
    index_add(user_vesting_ids, user_vesting_count, vesting_position, new_owner, vesting_id)
    schedule['owner'] = new_owner
    vestings[vesting_id] = schedule

    VestingTransferred({
        "id": vesting_id,
        "previous_owner": previous_owner,
        "new_owner": new_owner,
        "token": schedule['token'],
        "remaining_amount": schedule['total_amount'] - schedule['claimed_amount']
    })

    exit_guard()

# --- Certificate ---
def hex_word(value: int, width: int):
    return hex(value)[2:].zfill(width)

def unix_seconds(moment: datetime.datetime):
    return int((moment - EPOCH).seconds)

# --- Helper/View functions ---
@export
def get_lock(lock_id: int):
    return locks[lock_id]

@export
def get_vesting(vesting_id: int):
    return vestings[vesting_id]

@export
def get_user_locks(owner: str):
    return index_list(user_lock_ids, user_lock_count, owner)

@export
def get_user_lock_count(owner: str):
    return user_lock_count[owner]

@export
def get_user_vestings(owner: str):
    return index_list(user_vesting_ids, user_vesting_count, owner)

@export
def get_user_vesting_count(owner: str):
    return user_vesting_count[owner]

@export
def get_claimable(vesting_id: int):
    schedule = vestings[vesting_id]
    if not schedule or schedule['claimed_amount'] >= schedule['total_amount']:
        return decimal('0')
    if now < cliff_end(schedule):
        return decimal('0')
    return vested_amount(schedule) - schedule['claimed_amount']

@export
def get_lock_certificate(lock_id: int):
    lock = locks[lock_id]
    assert lock, 'Lock does not exist'

    amount = lock['amount']
    whole = int(amount)
    fraction = int((amount - whole) * AMOUNT_SCALE)

    payload = hex_word(lock_id, 64) \
        + hashlib.sha3(lock['token']) \
        + hex_word(whole, 24) \
        + hex_word(fraction, 26) \
        + hex_word(unix_seconds(lock['unlock_time']), 8) \
        + hashlib.sha3(lock['owner']) \
        + hashlib.sha3(metadata['chain_id'])
    return hashlib.sha3(payload)

@export
def get_fees():
    return {
        "lock_fee": metadata['lock_fee'],
        "vesting_fee": metadata['vesting_fee'],
        "fee_receiver": metadata['fee_receiver'],
        "fee_token": metadata['fee_token'],
        "chain_id": metadata['chain_id']
    }
