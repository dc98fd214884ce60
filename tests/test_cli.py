"""
CLI pipeline tests

Runs the pipeline stages from __main__ directly on a ProgramState, the way
main() chains them.
"""

import pytest
from pathlib import Path
from argparse import Namespace

from macrodown.__main__ import (
    env_check,
    source_parse,
    diagnostics_report,
    html_compile,
    results_report,
)
from macrodown.config import appsettings
from macrodown.models import ProgramState, pipeline


@pytest.fixture
def workspace(tmp_path: Path):
    inputdir = tmp_path / "in"
    outputdir = tmp_path / "out"
    inputdir.mkdir()
    (inputdir / "doc.md").write_text(
        "# Title\n\n[note]\nHey dude\n[/note]\n\n[hint]\nunclosed\n",
        encoding="utf-8",
    )
    (inputdir / "macros.yaml").write_text("macros:\n  hint:\n    kind: tip\n", encoding="utf-8")
    return inputdir, outputdir


def state_make(inputdir, outputdir, **options):
    namespace = Namespace(
        inputFile=options.get("inputFile", "doc.md"),
        macroFile=options.get("macroFile"),
        noBuiltins=options.get("noBuiltins", False),
        outputSubdir=".",
        verbosity=0,
        unrelated="dropped",
    )
    return ProgramState.state_createFromNamespace(namespace, inputdir=inputdir, outputdir=outputdir)


class TestStateCreation:
    """Test ProgramState construction"""

    def test_unknown_options_dropped(self, workspace):
        inputdir, outputdir = workspace
        state = state_make(inputdir, outputdir)
        assert state.inputFile == "doc.md"
        assert not hasattr(state, "unrelated")

    def test_copy_is_independent(self, workspace):
        state = state_make(*workspace)
        clone = state.copy()
        clone.inputFile = "other.md"
        assert state.inputFile == "doc.md"


class TestPipeline:
    """Test the stages end to end"""

    def test_full_run(self, workspace, capsys):
        """Document compiled; unclosed macro reported but not fatal by default"""
        inputdir, outputdir = workspace
        state = pipeline(
            state_make(inputdir, outputdir, macroFile="macros.yaml"),
            env_check,
            source_parse,
            diagnostics_report,
            html_compile,
            results_report,
        )

        assert state.envOK is True
        assert state.compileResult['status'] is True
        html = (outputdir / "index.html").read_text(encoding="utf-8")
        assert '<div class="macro-note"><p>Hey dude</p></div>' in html
        assert '<div>Unclosed macro: hint</div>' in html

        assert "doc.md:7:1: error: Unclosed macro: hint" in capsys.readouterr().err

    def test_no_builtins(self, workspace):
        """Without stock macros, [note] stays literal text"""
        inputdir, outputdir = workspace
        state = pipeline(
            state_make(inputdir, outputdir, noBuiltins=True),
            env_check,
            source_parse,
        )
        paragraphs = [node for node in state.parsedTree.children if node.type == "paragraph"]
        assert paragraphs[0].children[0].value == "[note]\nHey dude\n[/note]"

    def test_strict_mode(self, workspace, monkeypatch):
        """Fatal diagnostics exit in strict mode"""
        monkeypatch.setattr(appsettings, "strict_mode", True)
        inputdir, outputdir = workspace
        state = pipeline(
            state_make(inputdir, outputdir, macroFile="macros.yaml"),
            env_check,
            source_parse,
        )
        with pytest.raises(SystemExit) as excinfo:
            diagnostics_report(state)
        assert excinfo.value.code == 1

    def test_missing_input(self, workspace):
        inputdir, outputdir = workspace
        with pytest.raises(SystemExit):
            env_check(state_make(inputdir, outputdir, inputFile="nope.md"))

    def test_missing_macro_file(self, workspace):
        inputdir, outputdir = workspace
        with pytest.raises(SystemExit):
            env_check(state_make(inputdir, outputdir, macroFile="nope.yaml"))

    def test_conflicting_macro_file(self, workspace, capsys):
        """A macro file redefining a stock name is a configuration error"""
        inputdir, outputdir = workspace
        (inputdir / "clash.yaml").write_text("macros:\n  note:\n    kind: tip\n", encoding="utf-8")
        state = env_check(state_make(inputdir, outputdir, macroFile="clash.yaml"))

        with pytest.raises(SystemExit):
            source_parse(state)
        assert "Cannot redefine the macro note" in capsys.readouterr().err
