"""Error taxonomy for the token vesting client."""


class VestingError(Exception):
    """Base class for every error raised by token_vesting_svm."""


class MalformedBuffer(VestingError, ValueError):
    """A byte buffer does not have the structure its layout requires."""


class InstructionTooLarge(VestingError):
    """Encoded instruction data does not fit in a single transaction."""


class AddressDerivationExhausted(VestingError):
    """No bump seed produced a valid program address."""


class InsufficientBalance(VestingError):
    def __init__(self, account, available: int, required: int):
        self.account = account
        self.available = available
        self.required = required
        super().__init__(
            f"Source token account {account} holds {available} base units, {required} required"
        )


class ContractAlreadyExists(VestingError):
    def __init__(self, vesting_account):
        self.vesting_account = vesting_account
        super().__init__(f"Contract already exists at {vesting_account}")


class ContractNotFound(VestingError):
    def __init__(self, vesting_account):
        self.vesting_account = vesting_account
        super().__init__(f"Vesting contract account {vesting_account} is unavailable")


class ContractNotInitialized(VestingError):
    def __init__(self, vesting_account=None):
        self.vesting_account = vesting_account
        target = f" {vesting_account}" if vesting_account is not None else ""
        super().__init__(f"Vesting contract account{target} is not initialized")


class InvalidAddressFormat(VestingError, ValueError):
    """A string could not be parsed as a base58 address."""


class AccountLookupFailed(VestingError):
    """The ledger client failed to answer, as opposed to reporting an absent account."""


class InvalidArguments(VestingError, ValueError):
    """Caller supplied arguments that cannot describe a valid request."""
