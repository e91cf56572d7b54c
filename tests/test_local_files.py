"""Test discovery of local session files"""
import pytest

from core.exceptions import BadRequestError
from services.ingestion.local_files import file_size, scan_session_files


@pytest.fixture
def projects_dir(tmp_path):
    """A ``<root>/<project>/*.jsonl`` tree"""
    for project, sessions in {"app-a": ["s1", "s2"], "app-b": ["s3"]}.items():
        folder = tmp_path / project
        folder.mkdir()
        for session in sessions:
            (folder / f"{session}.jsonl").write_text('{"type": "user"}\n')
        (folder / "notes.txt").write_text("ignored")
    (tmp_path / "top-level.jsonl").write_text("{}\n")
    return tmp_path


class TestScanSessionFiles:
    """Test grouping of session files by project"""

    def test_directory(self, projects_dir):
        projects = scan_session_files(str(projects_dir))

        assert sorted(projects) == ["app-a", "app-b"]
        assert [p.name for p in projects["app-a"]] == ["s1.jsonl", "s2.jsonl"]
        assert [p.name for p in projects["app-b"]] == ["s3.jsonl"]

    def test_directory_with_project_override(self, projects_dir):
        projects = scan_session_files(str(projects_dir), project="merged")
        assert list(projects) == ["merged"]
        assert len(projects["merged"]) == 3

    def test_single_file_uses_parent_name(self, projects_dir):
        path = projects_dir / "app-b" / "s3.jsonl"
        assert scan_session_files(str(path)) == {"app-b": [path]}
        assert scan_session_files(str(path), project="other") == {"other": [path]}

    def test_non_jsonl_file(self, projects_dir):
        with pytest.raises(BadRequestError):
            scan_session_files(str(projects_dir / "app-a" / "notes.txt"))

    def test_missing_path(self, tmp_path):
        with pytest.raises(BadRequestError):
            scan_session_files(str(tmp_path / "nowhere"))

    def test_file_size(self, projects_dir):
        assert file_size(projects_dir / "app-a" / "s1.jsonl") == len('{"type": "user"}\n')
