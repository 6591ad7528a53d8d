"""
Account registry errors.
"""


class ValidationError(Exception):
    """Raised when an account is added with missing or conflicting fields"""
    def __init__(self, message: str, field: str = None):
        self.field = field
        self.message = message
        super().__init__(message)


class AccountNotFound(Exception):
    """Raised when an operation targets an address that is not tracked"""
    def __init__(self, address: str):
        self.address = address
        super().__init__(f"No tracked account with address {address!r}")
