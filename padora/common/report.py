"""
Pydantic model for the result of a demo crack run.

- CrackReport holds the sizes, the cost and the outcome of one run.
- serialize_report / parse_report convert it to and from JSON bytes.
"""

from pydantic import BaseModel


class CrackReport(BaseModel):
    """
    Summary of one run.
    { "message_length": 45, "padded_length": 48, "oracle_calls": 6123, ... }
    """
    block_size: int
    message_length: int
    padded_length: int       # Ciphertext length without the IV
    oracle_calls: int
    calls_per_byte: int
    elapsed_seconds: float
    success: bool
    recovered_b64: str = ""  # Base64 encoded recovered plaintext


def calls_per_byte(oracle_calls: int, padded_length: int) -> int:
    """Average number of oracle calls per recovered byte, rounded."""
    if padded_length <= 0:
        return 0
    return round(oracle_calls / padded_length)

def serialize_report(report: CrackReport) -> bytes:
    """Serializes a report into UTF-8 JSON."""
    return report.model_dump_json().encode('utf-8')

def parse_report(data: bytes) -> CrackReport:
    """Parses UTF-8 JSON into a report."""
    try:
        return CrackReport.model_validate_json(data)
    except Exception as e:
        raise ValueError(f"Report validation failed: {e}")
