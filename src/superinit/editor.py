"""
superinit.editor - Declarative Artifact Editing
===============================================

Generated files such as Django's settings.py are patched in place rather
than regenerated. Edits are described as data:

- ``Replacement``: a regular expression and its substitution
- ``Insertion``: an anchor-line pattern and the lines to add after it

``ArtifactEditor`` applies them and only touches the file when the content
actually changes, so a no-op edit leaves the file byte-for-byte intact.

Usage
-----
>>> editor = ArtifactEditor(Path("mysite/settings.py"))
>>> editor.insert_after(Insertion(
...     anchor=r"^(?P<indent>\\s*)(?P<quote>['\\"])django\\.contrib\\.staticfiles(?P=quote),",
...     lines=("{indent}{quote}rest_framework{quote},",),
... ))
True
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path

from superinit.errors import PreconditionError


@dataclass(frozen=True)
class Replacement:
    """
    Substitute every match of ``pattern`` with ``replacement``.

    ``replacement`` is anything ``re.sub`` accepts: a template string using
    ``\\g<name>`` backreferences, or a function of the match. Patterns are
    compiled with ``re.MULTILINE``.
    """

    pattern: str
    replacement: str | Callable[[re.Match[str]], str]


@dataclass(frozen=True)
class Insertion:
    """
    Insert ``lines`` immediately after the first line matching ``anchor``.

    Each entry of ``lines`` is a ``str.format`` template receiving the
    anchor match's named groups, which lets inserted lines copy the anchor's
    indentation and quoting style.
    """

    anchor: str
    lines: tuple[str, ...]


class ArtifactEditor:
    """
    Read, probe and patch a single text file.

    Parameters
    ----------
    path : Path
        The file to edit. It does not need to exist for ``contains``.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def read(self) -> str:
        """
        Return the file content.

        Raises
        ------
        PreconditionError
            If the file does not exist.
        """
        if not self.path.is_file():
            raise PreconditionError(f"{self.path} does not exist")
        return self.path.read_text(encoding="utf-8")

    def contains(self, pattern: str, *, regex: bool = False) -> bool:
        """
        Whether the file contains ``pattern``.

        A missing file contains nothing. With ``regex=False`` this is a
        plain substring search.
        """
        if not self.path.is_file():
            return False
        content = self.path.read_text(encoding="utf-8")
        if regex:
            return re.search(pattern, content, re.MULTILINE) is not None
        return pattern in content

    def replace(self, replacements: Iterable[Replacement]) -> int:
        """
        Apply every replacement in order and write the result.

        Returns
        -------
        int
            Total number of substitutions made. The file is written only
            when this is non-zero.
        """
        content = self.read()
        total = 0
        for edit in replacements:
            content, count = re.subn(
                edit.pattern, edit.replacement, content, flags=re.MULTILINE
            )
            total += count

        if total:
            self._write(content)
        return total

    def insert_after(self, insertion: Insertion) -> bool:
        """
        Insert lines after the anchor line.

        Returns
        -------
        bool
            True once the lines have been written.

        Raises
        ------
        PreconditionError
            If no line matches the anchor.
        """
        anchor = re.compile(insertion.anchor)
        lines = self.read().splitlines(keepends=True)

        for index, line in enumerate(lines):
            match = anchor.search(line)
            if match is None:
                continue

            groups = {k: v or "" for k, v in match.groupdict().items()}
            new_lines = [template.format(**groups) + "\n" for template in insertion.lines]
            if not line.endswith("\n"):
                lines[index] = line + "\n"
            lines[index + 1:index + 1] = new_lines
            self._write("".join(lines))
            return True

        raise PreconditionError(
            f"Anchor /{insertion.anchor}/ not found in {self.path}"
        )

    def _write(self, content: str) -> None:
        self.path.write_text(content, encoding="utf-8")
