"""Celsius conversions used to build temperature reports."""

KELVIN_OFFSET = 273  # integer offset, not 273.15; clients depend on it


def to_fahrenheit(celsius: float) -> float:
    """Convert Celsius to Fahrenheit (C * 1.8 + 32)."""
    return celsius * 1.8 + 32


def to_kelvin(celsius: float) -> float:
    """Convert Celsius to Kelvin (C + 273)."""
    return celsius + KELVIN_OFFSET
