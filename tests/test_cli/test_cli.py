"""
Tests para la interfaz de línea de comandos de tagtree.
"""

from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner

from tagtree import __version__
from tagtree.cli import EXIT_CONFIG_ERROR, main


# ── Fixtures ──────────────────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("TAGTREE_VAULT", "TAGTREE_LOG_LEVEL", "TAGTREE_DEFAULT_VIEW"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def vault_dir(tmp_path: Path) -> Path:
    root = tmp_path / "vault"
    root.mkdir()
    (root / "alpha.md").write_text(
        "---\ntags: [project/alpha]\nstatus: active\npriority: high\n---\nAlpha\n",
        encoding="utf-8",
    )
    (root / "beta.md").write_text(
        "---\nstatus: done\npriority: low\n---\nWork on #project/beta\n",
        encoding="utf-8",
    )
    (root / "diary.md").write_text("Today #personal\n", encoding="utf-8")
    return root


@pytest.fixture
def config_file(tmp_path: Path, vault_dir: Path) -> Path:
    path = tmp_path / "tagtree.yaml"
    path.write_text(
        yaml.safe_dump({
            "vault": {"root": str(vault_dir)},
            "default_view": "By status",
            "views": [
                {"name": "By status", "levels": [{"type": "property", "key": "status"}]},
                {"name": "Everything", "levels": [{"type": "tag", "depth": -1}]},
            ],
        }),
        encoding="utf-8",
    )
    return path


# ── Tests ────────────────────────────────────────────────────────────────


class TestTreeCommand:
    def test_default_view_from_config(self, runner, config_file):
        result = runner.invoke(main, ["tree", "-c", str(config_file), "--quiet"])

        assert result.exit_code == 0, result.output
        lines = result.output.splitlines()
        assert lines[0] == "By status (2)"
        assert "├── active (1)" in lines
        assert "│   └── alpha" in lines
        assert "└── done (1)" in lines

    def test_named_view_without_files(self, runner, config_file):
        result = runner.invoke(
            main,
            ["tree", "-c", str(config_file), "--view", "Everything", "--no-files", "--quiet"],
        )

        assert result.exit_code == 0, result.output
        assert "├── personal (1)" in result.output
        assert "└── project (2)" in result.output
        assert "diary" not in result.output

    def test_vault_option_with_builtin_views(self, runner, vault_dir):
        result = runner.invoke(main, ["tree", "--vault", str(vault_dir), "--depth", "1", "--quiet"])

        assert result.exit_code == 0, result.output
        assert result.output.splitlines() == [
            "All Tags (3)",
            "├── personal (1)",
            "└── project (2)",
        ]

    def test_sort_option(self, runner, vault_dir):
        result = runner.invoke(
            main, ["tree", "--vault", str(vault_dir), "--sort", "alpha-desc", "--depth", "1", "--quiet"]
        )

        assert result.exit_code == 0, result.output
        assert result.output.splitlines()[1] == "├── project (2)"

    def test_unknown_view(self, runner, config_file):
        result = runner.invoke(main, ["tree", "-c", str(config_file), "--view", "Nope", "--quiet"])

        assert result.exit_code == EXIT_CONFIG_ERROR
        assert "Unknown view" in result.output

    def test_missing_vault(self, runner, tmp_path):
        result = runner.invoke(main, ["tree", "--vault", str(tmp_path / "absent"), "--quiet"])

        assert result.exit_code == EXIT_CONFIG_ERROR
        assert "Vault directory not found" in result.output


class TestLabelsCommand:
    def test_all_labels_with_counts(self, runner, vault_dir):
        result = runner.invoke(main, ["labels", "--vault", str(vault_dir), "--quiet"])

        assert result.exit_code == 0, result.output
        rows = [line.split() for line in result.output.splitlines()]
        assert rows == [
            ["personal", "1"],
            ["project", "2"],
            ["project/alpha", "1"],
            ["project/beta", "1"],
        ]

    def test_labels_under(self, runner, vault_dir):
        result = runner.invoke(
            main, ["labels", "--vault", str(vault_dir), "--under", "#project/alpha", "--quiet"]
        )

        assert result.exit_code == 0, result.output
        assert [line.split()[0] for line in result.output.splitlines()] == ["project/alpha"]

    def test_no_labels(self, runner, tmp_path):
        result = runner.invoke(main, ["labels", "--vault", str(tmp_path), "--quiet"])

        assert result.exit_code == 0
        assert "No labels found." in result.output


class TestViewsAndValidation:
    def test_views_lists_default(self, runner, config_file):
        result = runner.invoke(main, ["views", "-c", str(config_file), "--quiet"])

        assert result.exit_code == 0, result.output
        assert "  By status *" in result.output
        assert "property:status" in result.output
        assert "tag:*" in result.output

    def test_validate_config_ok(self, runner, config_file):
        result = runner.invoke(main, ["validate-config", "-c", str(config_file), "--quiet"])

        assert result.exit_code == 0, result.output
        assert "Valid configuration" in result.output
        assert "Views defined: 2" in result.output

    def test_validate_config_invalid(self, runner, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text(
            yaml.safe_dump({"views": [{"name": "X", "levels": [{"type": "tag", "depth": 0}]}]}),
            encoding="utf-8",
        )

        result = runner.invoke(main, ["validate-config", "-c", str(path), "--quiet"])

        assert result.exit_code == EXIT_CONFIG_ERROR
        assert "Invalid configuration" in result.output

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert __version__ in result.output
