"""
Upload progress arithmetic.
"""

from dataclasses import dataclass

KIB = 1024
MIB = 1024 * 1024


@dataclass(frozen=True)
class UploadProgress:
    percentage: float
    speed: str


def format_speed(bytes_per_second: float) -> str:
    """Format a transfer rate as 'x.xx MB/s' above 1 MiB/s, else 'x.xx KB/s'."""
    if bytes_per_second > MIB:
        return f"{bytes_per_second / MIB:.2f} MB/s"
    return f"{bytes_per_second / KIB:.2f} KB/s"


def measure_progress(bytes_transferred: int, total_bytes: int, elapsed_seconds: float) -> UploadProgress:
    """
    Progress of a transfer.

    Args:
        bytes_transferred: Bytes sent so far
        total_bytes: Size of the whole file
        elapsed_seconds: Time since the transfer started

    Returns:
        UploadProgress with percentage in 0-100 and a formatted speed
    """
    percentage = (bytes_transferred / total_bytes) * 100 if total_bytes > 0 else 100.0
    if elapsed_seconds <= 0:
        return UploadProgress(percentage=percentage, speed="0 KB/s")
    return UploadProgress(percentage=percentage, speed=format_speed(bytes_transferred / elapsed_seconds))
