"""Tests for superinit.editor."""

from pathlib import Path

import pytest

from superinit.editor import ArtifactEditor, Insertion, Replacement
from superinit.errors import PreconditionError


ANCHOR = r"^(?P<indent>\s*)(?P<quote>['\"])b(?P=quote),"


@pytest.fixture
def artifact(tmp_path: Path) -> Path:
    path = tmp_path / "settings.py"
    path.write_text("APPS = [\n    'a',\n    'b',\n    'c',\n]\n")
    return path


class TestContains:
    """Tests for ArtifactEditor.contains."""

    def test_substring(self, artifact: Path) -> None:
        editor = ArtifactEditor(artifact)
        assert editor.contains("'b'")
        assert not editor.contains("'z'")

    def test_regex(self, artifact: Path) -> None:
        assert ArtifactEditor(artifact).contains(r"^\s+'c',$", regex=True)

    def test_missing_file_contains_nothing(self, tmp_path: Path) -> None:
        assert not ArtifactEditor(tmp_path / "missing.py").contains("anything")


class TestReplace:
    """Tests for ArtifactEditor.replace."""

    def test_template_replacement(self, artifact: Path) -> None:
        count = ArtifactEditor(artifact).replace(
            [Replacement(pattern=r"'(?P<x>[ab])'", replacement=r"'\g<x>\g<x>'")]
        )

        assert count == 2
        assert artifact.read_text() == "APPS = [\n    'aa',\n    'bb',\n    'c',\n]\n"

    def test_callable_replacement(self, artifact: Path) -> None:
        ArtifactEditor(artifact).replace(
            [Replacement(pattern=r"'c'", replacement=lambda m: m.group(0).upper())]
        )
        assert "    'C',\n" in artifact.read_text()

    def test_no_match_leaves_file_untouched(self, artifact: Path) -> None:
        """Zero substitutions means zero writes."""
        before = artifact.stat().st_mtime_ns

        count = ArtifactEditor(artifact).replace(
            [Replacement(pattern="nothing-here", replacement="x")]
        )

        assert count == 0
        assert artifact.stat().st_mtime_ns == before

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(PreconditionError):
            ArtifactEditor(tmp_path / "missing.py").replace([])


class TestInsertAfter:
    """Tests for ArtifactEditor.insert_after."""

    def test_inserts_after_anchor(self, artifact: Path) -> None:
        """New lines follow the anchor and copy its indentation and quotes."""
        ArtifactEditor(artifact).insert_after(
            Insertion(anchor=ANCHOR, lines=("{indent}{quote}x{quote},", "{indent}{quote}y{quote},"))
        )

        assert artifact.read_text().splitlines() == [
            "APPS = [",
            "    'a',",
            "    'b',",
            "    'x',",
            "    'y',",
            "    'c',",
            "]",
        ]

    def test_only_first_anchor(self, tmp_path: Path) -> None:
        path = tmp_path / "f.py"
        path.write_text('"b",\n"b",\n')

        ArtifactEditor(path).insert_after(Insertion(anchor=ANCHOR, lines=("{quote}n{quote},",)))

        assert path.read_text() == '"b",\n"n",\n"b",\n'

    def test_anchor_on_last_line_without_newline(self, tmp_path: Path) -> None:
        path = tmp_path / "f.py"
        path.write_text("'b',")

        ArtifactEditor(path).insert_after(Insertion(anchor=ANCHOR, lines=("'n',",)))

        assert path.read_text() == "'b',\n'n',\n"

    def test_missing_anchor(self, artifact: Path) -> None:
        original = artifact.read_text()

        with pytest.raises(PreconditionError, match="Anchor"):
            ArtifactEditor(artifact).insert_after(Insertion(anchor=r"zzz", lines=("x",)))

        assert artifact.read_text() == original
