#!/usr/bin/env python3
"""
Command-line front end for the Derstand interpreter.

    derstand program.dst      run a file and report its execution time
    derstand                  interactive shell, one program per line
"""

import argparse
import sys
from typing import BinaryIO, List, Optional

from derstand import CompileError, DerstandInterpreter, DerstandRuntimeError
from derstand_config import ConfigError, DerstandConfig
from derstand_debugger import DerstandDebugger
from derstand_runner import SourceLoadError, format_elapsed, load_source, timed_execute

VERSION = "0.1.0"
EXIT_COMMANDS = ("quit", "exit")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="derstand", description="Compile and run Derstand programs")
    ap.add_argument("file", nargs="?", help="Program file; omit for the interactive shell")
    ap.add_argument("--tape-size", type=int, default=None, help="Number of tape cells (default: DERSTAND_TAPE_SIZE or 30000)")
    ap.add_argument("--no-timing", action="store_true", help="Do not report execution time")
    ap.add_argument("--disasm", action="store_true", help="Print the compiled instruction listing instead of running")
    ap.add_argument("--trace", action="store_true", help="Run under the step-by-step debugger")
    return ap


def run_file(path: str, config: DerstandConfig, disasm: bool = False, trace: bool = False) -> int:
    try:
        source = load_source(path)
    except SourceLoadError as e:
        print(e, file=sys.stderr)
        return 1

    if trace:
        debugger = DerstandDebugger(tape_size=config.tape_size, max_steps=config.trace_steps)
        try:
            debugger.debug_run(source)
        except CompileError as e:
            print(f"Compilation error: {e}", file=sys.stderr)
            return 1
        except DerstandRuntimeError as e:
            print(f"Execution error: {e}", file=sys.stderr)
            return 1
        return 0

    interpreter = DerstandInterpreter(tape_size=config.tape_size)
    try:
        interpreter.compile(source)
    except CompileError as e:
        print(f"Compilation error: {e}", file=sys.stderr)
        return 1

    if disasm:
        for line in interpreter.disassemble():
            print(line)
        return 0

    try:
        output, elapsed = timed_execute(interpreter)
    except DerstandRuntimeError as e:
        print(f"Execution error: {e}", file=sys.stderr)
        return 1

    print(output, end="")
    if config.show_timing:
        print(f"\n{format_elapsed(elapsed)}")
    return 0


def repl(config: DerstandConfig, stream: Optional[BinaryIO] = None) -> int:
    """Interactive shell. The tape persists from one line to the next.

    Lines and ',' input come from the same binary reader, so a program can
    read the bytes that follow its own line.
    """
    stream = stream if stream is not None else sys.stdin.buffer
    interpreter = DerstandInterpreter(tape_size=config.tape_size, input_stream=stream)

    print(f"Derstand Interpreter v{VERSION}")
    print("Instructions: > < + - . , [ ] # $ % &")
    print("Type 'quit' to exit.")

    while True:
        print("\n> ", end="", flush=True)
        raw = stream.readline()
        if not raw:
            break
        line = raw.decode("utf-8", errors="replace").strip()
        if line in EXIT_COMMANDS:
            break
        if not line:
            continue

        try:
            interpreter.compile(line)
        except CompileError as e:
            print(f"Compilation error: {e}")
            continue

        try:
            output, elapsed = timed_execute(interpreter)
        except DerstandRuntimeError as e:
            print(f"Execution error: {e}")
            continue

        if output:
            print(f"Output: {output}")
        else:
            print("(no output)")
        if config.show_timing:
            print(format_elapsed(elapsed))

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = DerstandConfig.from_env()
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1
    if args.tape_size is not None:
        if args.tape_size < 1:
            print(f"Configuration error: --tape-size must be at least 1, got {args.tape_size}", file=sys.stderr)
            return 1
        config.tape_size = args.tape_size
    if args.no_timing:
        config.show_timing = False

    if args.file:
        return run_file(args.file, config, disasm=args.disasm, trace=args.trace)
    return repl(config)


if __name__ == "__main__":
    sys.exit(main())
