"""Tests for ORM detection."""

from pathlib import Path
from unittest.mock import MagicMock

from orm_drift.orm.detector import detect_orms
from orm_drift.orm.models import ORMKind

from conftest import make_django_project, make_prisma_project, write_files


class TestDetectOrms:
    """Verify marker-file detection over workspace roots."""

    def test_django_and_prisma_in_one_root(self, tmp_path: Path) -> None:
        make_django_project(tmp_path)
        make_prisma_project(tmp_path)

        configs = detect_orms([tmp_path])

        assert [c.kind for c in configs] == [ORMKind.DJANGO, ORMKind.PRISMA]
        django, prisma = configs
        assert django.display_name == "Django"
        assert django.icon == "symbol-class"
        assert django.project_root == tmp_path
        assert django.config_path == tmp_path / "manage.py"
        assert prisma.icon == "symbol-interface"
        assert prisma.config_path == tmp_path / "prisma" / "schema.prisma"
        assert prisma.project_root == tmp_path / "prisma"

    def test_nested_manage_py(self, tmp_path: Path) -> None:
        make_django_project(tmp_path / "backend")

        (config,) = detect_orms([tmp_path])

        assert config.project_root == tmp_path / "backend"

    def test_direct_match_preferred(self, tmp_path: Path) -> None:
        write_files(tmp_path, {"schema.prisma": "", "a/schema.prisma": ""})

        (config,) = detect_orms([tmp_path])

        assert config.config_path == tmp_path / "schema.prisma"

    def test_excluded_directories_ignored(self, tmp_path: Path) -> None:
        write_files(tmp_path, {"node_modules/pkg/prisma/schema.prisma": ""})

        assert detect_orms([tmp_path]) == []

    def test_empty_workspace(self, tmp_path: Path) -> None:
        assert detect_orms([tmp_path]) == []
        assert detect_orms([]) == []

    def test_multiple_roots_deduplicated(self, tmp_path: Path) -> None:
        make_prisma_project(tmp_path / "web")

        configs = detect_orms([tmp_path, tmp_path / "web"])

        assert len(configs) == 1

    def test_never_raises(self, tmp_path: Path) -> None:
        """A failing ecosystem probe is logged, the other is still reported."""
        workspace = MagicMock()

        def exists(path: Path) -> bool:
            if path.name == "manage.py":
                raise PermissionError("denied")
            return path.name == "schema.prisma"

        workspace.exists.side_effect = exists

        configs = detect_orms([tmp_path], workspace=workspace)

        assert [c.kind for c in configs] == [ORMKind.PRISMA]
