"""Entries selectors.

Rules follow the KPScript entry identification syntax described in
https://keepass.info/help/v2_dev/scr_sc_index.html#editentry
"""

from typing import Any, Iterable, Mapping, Optional

from keepass_kpscript.command_line_utils import quote_value


def _flatten(values: Iterable[Any]) -> list[str]:
    """Flatten nested lists and tuples of strings."""
    flat = []
    for value in values:
        if isinstance(value, (list, tuple)):
            flat.extend(_flatten(value))
        else:
            flat.append(str(value))
    return flat


class Select:
    """Select entries from a KeePass database.

    Every selection method returns the selector itself so that calls can be
    chained. Clauses are rendered in the order they were added.
    """

    def __init__(self) -> None:
        """Initialize an empty selector."""
        self._selectors: list[str] = []

    def fields(self, selection: Optional[Mapping[str, Any]] = None, **field_values: Any) -> "Select":
        """Select a set of given field values.

        Args:
            selection: Mapping of field name to field value to be selected
            **field_values: More field name to field value pairs, added after selection

        Returns:
            The selector itself
        """
        for pairs in (selection or {}, field_values):
            for field_name, field_value in pairs.items():
                self._selectors.append(f"-ref-{field_name}:{quote_value(field_value)}")
        return self

    def uuid(self, id: str) -> "Select":
        """Select a UUID.

        Args:
            id: The UUID

        Returns:
            The selector itself
        """
        self._selectors.append(f"-refx-UUID:{id}")
        return self

    def tags(self, *lst_tags: Any) -> "Select":
        """Select a list of tags.

        Args:
            *lst_tags: Tags to select, given as strings or lists of strings

        Returns:
            The selector itself
        """
        self._selectors.append(f"-refx-Tags:{quote_value(','.join(_flatten(lst_tags)))}")
        return self

    def expires(self, switch: bool = True) -> "Select":
        """Select entries that expire."""
        self._selectors.append(f"-refx-Expires:{'true' if switch else 'false'}")
        return self

    def expired(self, switch: bool = True) -> "Select":
        """Select entries that have expired."""
        self._selectors.append(f"-refx-Expired:{'true' if switch else 'false'}")
        return self

    def group(self, group_name: str) -> "Select":
        """Select entries that have a given parent group.

        Args:
            group_name: Name of the parent group

        Returns:
            The selector itself
        """
        self._selectors.append(f"-refx-Group:{quote_value(group_name)}")
        return self

    def group_path(self, *group_path_entries: Any) -> "Select":
        """Select entries that have a given group path.

        Args:
            *group_path_entries: Group path segments, given as strings or lists of strings

        Returns:
            The selector itself
        """
        self._selectors.append(f"-refx-GroupPath:{quote_value('/'.join(_flatten(group_path_entries)))}")
        return self

    def all(self) -> "Select":
        """Select all entries."""
        self._selectors.append("-refx-All")
        return self

    def render(self) -> str:
        """Return the command-line string selecting the entries."""
        return " ".join(self._selectors)

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return f"Select({self.render()!r})"
