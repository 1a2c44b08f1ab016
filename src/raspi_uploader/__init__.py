"""Upload Raspberry Pi captures to object storage and announce them on DingTalk."""

__version__ = "0.1.0"
