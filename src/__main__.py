#!/usr/bin/env python3
"""
macrodown - Bracket macros for line-oriented documents

Compiles a markdown-like document containing [macro] tags to a standalone
HTML file, reporting unclosed macros as diagnostics.

As with the other apps built this way, the ChRIS "plugin" pattern serves as
the general purpose CLI framework: positional inputdir/outputdir plus options.

Usage:
    macrodown inputdir/ outputdir/ --inputFile doc.md

Examples:
    # Compile with the stock macros (note, tip, code, embed, ...)
    macrodown . output/ --inputFile doc.md

    # Extra macro names from a YAML file, no stock names
    macrodown . output/ --inputFile doc.md --macroFile macros.yaml --noBuiltins

    # Fail on unclosed macros
    MACRODOWN_STRICT_MODE=true macrodown . output/ --inputFile doc.md
"""

import sys
from pathlib import Path
from argparse import ArgumentParser, Namespace, ArgumentDefaultsHelpFormatter

from chris_plugin import chris_plugin
from .config import appsettings
from .lib import (
    Parser,
    Compiler,
    MacroRegistry,
    MacroFileError,
    Report,
    builtins_register,
    diagnostics_collect,
    macroFile_load,
    __version__,
    LOG,
    state_connectToLogger,
)
from .models import ProgramState, pipeline


# Define CLI arguments
parser = ArgumentParser(
    description="macrodown - compile documents with [macro] tags to HTML",
    formatter_class=ArgumentDefaultsHelpFormatter,
)

parser.add_argument(
    "--inputFile", required=True, type=str, help="Input document (relative to inputdir)"
)

parser.add_argument(
    "--macroFile",
    default=None,
    type=str,
    help="YAML file mapping extra macro names to stock macros (relative to inputdir)",
)

parser.add_argument(
    "--noBuiltins",
    action="store_true",
    default=False,
    help="Do not register the stock macros under their own names",
)

parser.add_argument(
    "--outputSubdir",
    default=".",
    type=str,
    help="Subdirectory within outputdir for the compiled document",
)

parser.add_argument(
    "-v",
    "--verbosity",
    action="count",
    default=1,
    help="Increase output verbosity (can be repeated: -v, -vv, -vvv)",
)

parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")


def env_check(inputstate: ProgramState) -> ProgramState:
    """
    Validate environment and resolve all file paths.

    Returns:
        ProgramState with inputSourceFile, macroSourceFile, htmlOutputdir
        and envOK set

    Exits:
        1 if the input file or macro file is not found
    """
    state = inputstate.copy()
    LOG("Checking environment...", level=2)

    input_file = state.inputdir / state.inputFile
    if not input_file.exists():
        print(f"Error: Input file not found: {input_file}", file=sys.stderr)
        state.envOK = False
        sys.exit(1)
    state.inputSourceFile = input_file
    LOG(f"Input file: {input_file}", level=2)

    if state.macroFile:
        macro_file = state.inputdir / state.macroFile
        if not macro_file.exists():
            print(f"Error: Macro file not found: {macro_file}", file=sys.stderr)
            state.envOK = False
            sys.exit(1)
        state.macroSourceFile = macro_file
        LOG(f"Macro file: {macro_file}", level=2)

    state.htmlOutputdir = state.outputdir / state.outputSubdir
    state.htmlOutputdir.mkdir(parents=True, exist_ok=True)
    LOG(f"Output directory: {state.htmlOutputdir}", level=2)

    state.envOK = True
    return state


def registry_build(state: ProgramState) -> MacroRegistry:
    """Stock macros unless disabled, then any macros from the macro file"""
    registry = MacroRegistry()
    if not state.noBuiltins:
        builtins_register(registry)
    if state.macroSourceFile:
        macroFile_load(state.macroSourceFile, registry)
    LOG(f"Registered macros: {', '.join(registry.names()) or '(none)'}", level=2)
    return registry


def source_parse(inputstate: ProgramState) -> ProgramState:
    """
    Read and parse the source document.

    Returns:
        ProgramState with parsedTree and report set

    Exits:
        1 if the file cannot be read or the macro file is invalid
    """
    state = inputstate.copy()

    LOG("Reading source file...", level=1)
    try:
        source = state.inputSourceFile.read_text(encoding="utf-8")
        LOG(f"Read {len(source)} characters from {state.inputSourceFile.name}", level=2)
    except OSError as e:
        print(f"Error reading input file: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        registry = registry_build(state)
    except (MacroFileError, ValueError, TypeError) as e:
        print(f"Macro configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    LOG("Parsing source...", level=1)
    state.parsedTree = Parser(source, registry=registry).parse()
    state.report = Report(source=state.inputFile)
    return state


def diagnostics_report(inputstate: ProgramState) -> ProgramState:
    """
    Print diagnostics for the parsed tree.

    Exits:
        1 in strict mode when any fatal diagnostic was reported
    """
    state = inputstate.copy()

    count = diagnostics_collect(state.parsedTree, state.report)
    for line in state.report.lines_format():
        print(line, file=sys.stderr)
    LOG(f"{count} diagnostic(s)", level=2)

    if state.report.fatal and appsettings.strict_mode:
        print("Error: fatal diagnostics in strict mode", file=sys.stderr)
        sys.exit(1)
    return state


def html_compile(inputstate: ProgramState) -> ProgramState:
    """
    Compile the parsed tree to a standalone HTML document.

    Returns:
        ProgramState with compileResult set (status, output_file, node_count)

    Exits:
        1 if there is no parsed tree
    """
    state = inputstate.copy()

    LOG("Compiling to HTML...", level=1)
    if state.parsedTree is None:
        print("Error: No parsed source available", file=sys.stderr)
        sys.exit(1)

    compiler = Compiler(state.parsedTree)
    state.compileResult = compiler.write(str(state.htmlOutputdir))
    LOG(f"Compilation complete: {state.compileResult['node_count']} nodes", level=2)
    return state


def results_report(inputstate: ProgramState) -> ProgramState:
    """Display compilation results to the user (terminal pipeline stage)"""
    state: ProgramState = inputstate.copy()
    if not state.compileResult:
        print("Error: Compilation failed", file=sys.stderr)
        sys.exit(1)

    LOG("Compilation successful", level=1)
    LOG(f"  Output: {state.compileResult['output_file']}", level=1)
    if state.report is not None and len(state.report):
        LOG(f"  Diagnostics: {len(state.report)}", level=1)
    return state


@chris_plugin(
    parser=parser,
    title="macrodown - bracket macro document compiler",
    category="Utility",
    min_memory_limit="100Mi",
    min_cpu_limit="500m",
)
def main(options: Namespace, inputdir: Path, outputdir: Path):
    """
    Main entry point - compile a document with [macro] tags to HTML.

    Pipeline:
        1. env_check: Validate paths
        2. source_parse: Register macros, read and parse the document
        3. diagnostics_report: Print unclosed-macro diagnostics
        4. html_compile: Write the HTML document
        5. results_report: Summarise
    """
    state: ProgramState = ProgramState.state_createFromNamespace(
        options=options, inputdir=inputdir, outputdir=outputdir
    )

    state_connectToLogger(state)

    pipeline(state, env_check, source_parse, diagnostics_report, html_compile, results_report)


if __name__ == "__main__":
    main()  # type: ignore  # @chris_plugin decorator transforms signature
