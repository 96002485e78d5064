"""PTP leap file end-to-end checks.

Usage:
    python -m ptp_leap
"""
