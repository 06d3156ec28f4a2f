"""
depinject command line.
"""

import pytest
from click.testing import CliRunner

from depinject import __version__
from depinject.cli.__main__ import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def no_env(tmp_path):
    return ["--env-file", str(tmp_path / "absent.env")]


class TestCheck:

    def test_valid_registry(self, runner, services_module):
        result = runner.invoke(cli, ["check", f"{services_module}:REGISTRY"])
        assert result.exit_code == 0
        assert "Registry is valid" in result.output
        assert "Services" in result.output

    def test_verbose_lists_resolution_order(self, runner, services_module):
        result = runner.invoke(cli, ["-v", "check", f"{services_module}:REGISTRY"])
        assert result.exit_code == 0
        assert result.output.index("db") < result.output.index("repo")

    def test_broken_registry(self, runner, services_module):
        result = runner.invoke(cli, ["check", f"{services_module}:BROKEN"])
        assert result.exit_code == 1
        assert "'a' requires unknown service 'missing'" in result.output
        assert "cycle" in result.output

    @pytest.mark.parametrize("target", ["no_colon", "cli_services:NOT_A_MAPPING", "cli_services:ABSENT"])
    def test_bad_target(self, runner, services_module, target):
        result = runner.invoke(cli, ["check", target])
        assert result.exit_code == 2

    def test_unimportable_module(self, runner):
        result = runner.invoke(cli, ["check", "definitely_not_a_module_xyz:REGISTRY"])
        assert result.exit_code == 2


class TestTreeAndGraph:

    def test_tree(self, runner, services_module):
        result = runner.invoke(cli, ["tree", f"{services_module}:REGISTRY"])
        assert result.exit_code == 0
        assert "repo\n└── db (eager)" in result.output

    def test_tree_to_file(self, runner, services_module, tmp_path):
        out = tmp_path / "tree.txt"
        result = runner.invoke(cli, ["tree", f"{services_module}:REGISTRY", "--root", "repo", "--out", str(out)])
        assert result.exit_code == 0
        assert out.read_text().startswith("repo")

    def test_graph(self, runner, services_module, tmp_path):
        out = tmp_path / "services.dot"
        result = runner.invoke(cli, ["graph", f"{services_module}:REGISTRY", "--out", str(out)])
        assert result.exit_code == 0
        assert '"repo" -> "db";' in out.read_text()


class TestResolve:

    def test_resolve(self, runner, services_module, no_env):
        result = runner.invoke(cli, [*no_env, "resolve", f"{services_module}:REGISTRY", "repo"])
        assert result.exit_code == 0
        assert "'repo(db)'" in result.output

    def test_resolve_unknown(self, runner, services_module, no_env):
        result = runner.invoke(cli, [*no_env, "resolve", f"{services_module}:REGISTRY", "ghost"])
        assert result.exit_code == 1
        assert "Unknown service 'ghost'" in result.output

    def test_resolve_cycle(self, runner, services_module, no_env):
        result = runner.invoke(cli, [*no_env, "resolve", f"{services_module}:BROKEN", "b"])
        assert result.exit_code == 1
        assert "'b' <- 'c' <- 'b'" in result.output


def test_version(runner):
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output
