"""Secret string wrapper that keeps sensitive values out of logs and errors.

A SecretString prints, compares and formats as its silenced string. The real
value has to be asked for explicitly with reveal(), and can be erased from
memory once it is not needed anymore.

Usage::

    secret = SecretString("MyPassword")
    print(secret)            # XXXXX
    secret.reveal()          # 'MyPassword'
    secret.erase()
    secret.reveal()          # '\\x00\\x00\\x00\\x00\\x00\\x00'
"""

from contextlib import contextmanager
from typing import Any, Iterator

from keepass_kpscript.constants import Constants


class SecretString:
    """String whose real value is hidden from str, repr, format and comparisons."""

    __slots__ = ("_buffer", "_silenced_str", "_erased")

    def __init__(self, value: str, *, silenced_str: str | None = None) -> None:
        """Initialize the secret.

        Args:
            value: Real value to protect
            silenced_str: String displayed instead of the real value (default: XXXXX)
        """
        # Kept in a mutable buffer so that erase() can zero it in place
        self._buffer = bytearray(value.encode("utf-8"))
        self._silenced_str = Constants.SILENCED_STR() if silenced_str is None else silenced_str
        self._erased = False

    @classmethod
    @contextmanager
    def protect(cls, value: str, *, silenced_str: str | None = None) -> Iterator["SecretString"]:
        """Protect a value for the duration of a with block.

        The secret is erased when the block exits, even on exceptions.

        Args:
            value: Real value to protect
            silenced_str: String displayed instead of the real value (default: XXXXX)

        Yields:
            The SecretString wrapping value
        """
        secret = cls(value, silenced_str=silenced_str)
        try:
            yield secret
        finally:
            secret.erase()

    def reveal(self) -> str:
        """Return the real value, or the erased filler once erased."""
        return self._buffer.decode("utf-8")

    def redacted(self) -> str:
        """Return the silenced string."""
        return self._silenced_str

    def erase(self) -> None:
        """Erase the real value from memory.

        Calling it several times is safe.
        """
        for i in range(len(self._buffer)):
            self._buffer[i] = 0
        self._buffer = bytearray(Constants.ERASED_FILLER().encode("utf-8"))
        self._erased = True

    @property
    def erased(self) -> bool:
        """Whether the real value has been erased."""
        return self._erased

    def __str__(self) -> str:
        return self._silenced_str

    def __repr__(self) -> str:
        return f"SecretString({self._silenced_str!r})"

    def __format__(self, format_spec: str) -> str:
        return format(self._silenced_str, format_spec)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, (SecretString, str)):
            return self._silenced_str == str(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._silenced_str)

    def __reduce__(self) -> Any:
        # Pickling would serialize the real value
        raise TypeError("SecretString cannot be pickled")


def unprotected(value: Any) -> str:
    """Get the real value of a string that may be a SecretString.

    Args:
        value: SecretString or any other value

    Returns:
        The revealed value of a SecretString, or str(value) otherwise
    """
    if isinstance(value, SecretString):
        return value.reveal()
    return str(value)
