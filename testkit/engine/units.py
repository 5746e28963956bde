"""Human-readable byte quantities."""

from __future__ import annotations

from testkit.engine.exceptions import ParseError

_UNITS: dict[str, int] = {
    "": 1,
    "k": 1024,
    "m": 1024**2,
    "g": 1024**3,
    "t": 1024**4,
}


class Bytes(int):
    """Amount of bytes, parsed from and rendered as strings like ``1m``."""

    @classmethod
    def parse(cls, text: str) -> Bytes:
        """Parse a size string into a byte count.

        Args:
            text: Number followed by an optional unit (k, m, g or t, in
                any case). Units are powers of 1024.

        Returns:
            The amount of bytes, truncated to an integer

        Raises:
            ParseError: If the number or the unit is malformed

        """
        stripped = text.strip()
        if not stripped:
            raise ParseError("Bytes quantity cannot be empty")

        unit = ""
        number = stripped
        if stripped[-1].isalpha():
            unit = stripped[-1].lower()
            number = stripped[:-1]
        if unit not in _UNITS:
            raise ParseError(f"Unknown bytes unit '{stripped[-1]}' in '{text}'")
        if not number:
            raise ParseError(f"Bytes quantity '{text}' lacks a number")

        try:
            value = float(number)
        except ValueError as e:
            raise ParseError(f"Invalid bytes quantity '{text}'") from e
        if value < 0 or value != value or value == float("inf"):
            raise ParseError(f"Invalid bytes quantity '{text}'")

        return cls(int(value * _UNITS[unit]))

    def format(self) -> str:
        """Render with two decimals and the largest fitting unit."""
        for suffix in ("t", "g", "m", "k"):
            multiplier = _UNITS[suffix]
            if self >= multiplier:
                return f"{int(self) / multiplier:.2f}{suffix.upper()}"
        return f"{int(self):.2f}"

    def compact(self) -> str:
        """Render losslessly using the largest unit that divides the value."""
        for suffix in ("t", "g", "m", "k"):
            multiplier = _UNITS[suffix]
            if self and self % multiplier == 0:
                return f"{int(self) // multiplier}{suffix}"
        return str(int(self))

    def __str__(self) -> str:
        return self.format()

    def __repr__(self) -> str:
        return f"Bytes({int(self)})"
