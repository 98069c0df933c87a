"""
CLI Evals -- the terminal entrypoint, run offline against the local stub.
"""

from typer.testing import CliRunner

from maire import __version__
from maire.cli import app

runner = CliRunner()


class TestCli:
    def test_version(self):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_run_prints_stack_and_ledger(self):
        result = runner.invoke(
            app, ["run", "Why is the sky blue?", "-t", "standard-chain", "-m", "local"]
        )
        assert result.exit_code == 0
        assert "Stub(local)" in result.output
        assert "<LEDGER>" in result.output
        assert "F0 | local | ref:" in result.output

    def test_bad_key_rejected_without_echo(self):
        result = runner.invoke(app, ["run", "Q", "-m", "local", "-k", "sk-secret-no-equals"])
        assert result.exit_code == 1
        assert "sk-secret" not in result.output
