"""
Program state model and pipeline helper

Defines ProgramState dataclass for the functional pipeline pattern and
the pipeline() helper for composing transformation stages.
"""

from pathlib import Path
from argparse import Namespace
from typing import Any, Optional, Type, TypeVar, Dict, Callable
from dataclasses import dataclass, field, fields, replace
from functools import reduce


PS = TypeVar("PS", bound="ProgramState")


@dataclass
class ProgramState:
    """
    Central state container for the processing pipeline (state bus pattern).

    Pipeline stages and their state additions:
        - Initial: inputdir, outputdir, verbosity, inputFile, macroFile,
          noBuiltins, outputSubdir
        - env_check: inputSourceFile, macroSourceFile, htmlOutputdir, envOK
        - source_parse: parsedTree, report
        - diagnostics_report: (no additions, may exit in strict mode)
        - html_compile: compileResult
        - results_report: (no additions, terminal stage)

    Attributes:
        inputdir: Directory containing the source document
        outputdir: Base output directory for compiled files
        verbosity: Logging verbosity level (1-3)
        inputFile: Input document filename (relative to inputdir)
        macroFile: Optional YAML macro file (relative to inputdir)
        noBuiltins: Skip registering the stock macros
        outputSubdir: Subdirectory within outputdir for output
        envOK: Environment validation passed
        inputSourceFile: Resolved path to the input document
        macroSourceFile: Resolved path to the macro file, if any
        htmlOutputdir: Final output directory (outputdir + outputSubdir)
        parsedTree: Root node of the parsed document
        report: Diagnostics collected from the parsed tree
        compileResult: Compilation results (output_file, node_count, status)
    """

    # CLI arguments
    inputdir: Optional[Path] = field(default=None)
    outputdir: Optional[Path] = field(default=None)
    verbosity: int = field(default=1)
    inputFile: str = field(default="")
    macroFile: Optional[str] = field(default=None)
    noBuiltins: bool = field(default=False)
    outputSubdir: str = field(default=".")

    # Pipeline state
    envOK: bool = field(default=False)
    inputSourceFile: Path = field(default=Path("/"))
    macroSourceFile: Optional[Path] = field(default=None)
    htmlOutputdir: Path = field(default=Path("/"))
    parsedTree: Optional[Any] = field(default=None)  # Node at runtime
    report: Optional[Any] = field(default=None)  # Report at runtime
    compileResult: Optional[Dict] = field(default=None)

    @classmethod
    def state_createFromNamespace(
        cls: Type["ProgramState"], options: Namespace, inputdir: Path, outputdir: Path
    ) -> "ProgramState":
        """
        Build the initial state from CLI options and the plugin directories.

        Options without a matching field (e.g. ones injected by chris_plugin)
        are dropped.
        """
        known = {f.name for f in fields(cls)}
        chosen = {name: value for name, value in vars(options).items() if name in known}
        return cls(**chosen, inputdir=inputdir, outputdir=outputdir)

    def copy(self: PS) -> PS:
        """Shallow copy; stages mutate the copy and hand it on"""
        return replace(self)


def pipeline(
    initial_state: ProgramState, *stages: Callable[[ProgramState], ProgramState]
) -> ProgramState:
    """
    Thread a state through each stage in turn.

        pipeline(state, env_check, source_parse, html_compile)

    is html_compile(source_parse(env_check(state))). A stage stops the run
    by exiting.
    """
    return reduce(lambda state, stage: stage(state), stages, initial_state)
