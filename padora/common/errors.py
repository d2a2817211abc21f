"""
Exception taxonomy for padora.

- InvalidPadding: a PKCS#7 check failed (the oracle's normal "reject").
- InvalidInput: malformed ciphertext or block size passed to the cracker.
- OracleInconsistency: the oracle answered in a way the attack model excludes.
- CrackCancelled: the caller asked the cracker to stop.
"""


class InvalidPadding(ValueError):
    """Raised by unpad(). Deliberately says nothing about which check failed."""

    def __init__(self):
        super().__init__("Invalid padding")


class InvalidInput(ValueError):
    """Raised when the cracker is handed something it cannot attack."""


class OracleInconsistency(RuntimeError):
    """
    Raised (in strict mode) when no guess is accepted outside the final block,
    or when the recovered plaintext does not carry a valid padding.
    """

    def __init__(self, message: str, offset: int = -1):
        super().__init__(message)
        self.offset = offset


class CrackCancelled(RuntimeError):
    """Raised when a crack run is cancelled through its cancel event."""

    def __init__(self, calls: int):
        super().__init__(f"Crack cancelled after {calls} oracle calls")
        self.calls = calls
