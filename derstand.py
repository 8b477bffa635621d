#!/usr/bin/env python3
"""
Derstand Interpreter

Derstand is a Brainfuck dialect with 12 commands:
    >   Move the pointer to the right (stays put at the last cell)
    <   Move the pointer to the left (stays put at cell 0)
    +   Increment the memory cell at the pointer
    -   Decrement the memory cell at the pointer
    .   Output the byte in the cell at the pointer
    ,   Input a byte and store it in the cell at the pointer
    [   Jump past the matching ] if the cell at the pointer is 0
    ]   Jump back to the matching [ if the cell at the pointer is nonzero
    #   Set the cell at the pointer to 0
    $   Copy the cell at the pointer into the next cell
    %   Move the pointer to the last cell
    &   Move the pointer to the first cell

All other characters are treated as comments and ignored.

Source is compiled once into a flat instruction list plus a jump table, so
brackets never have to be searched for at run time.
"""

import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import BinaryIO, List, Optional, Union

import numpy as np

TAPE_SIZE = 30000
CELL_MASK = 0xFF


class Instruction(Enum):
    MOVE_RIGHT = '>'
    MOVE_LEFT = '<'
    INCREMENT = '+'
    DECREMENT = '-'
    OUTPUT = '.'
    INPUT = ','
    JUMP_IF_ZERO = '['
    JUMP_IF_NOT_ZERO = ']'
    ZERO_CELL = '#'
    COPY_TO_NEXT = '$'
    SEEK_HIGH = '%'
    SEEK_LOW = '&'


SYMBOLS = {inst.value: inst for inst in Instruction}


class DerstandError(Exception):
    """Base class for interpreter errors."""


class CompileError(DerstandError, SyntaxError):
    """Raised when source cannot be compiled."""

    def __init__(self, message: str, position: int):
        super().__init__(message)
        self.message = message
        self.position = position

    def __str__(self):
        return self.message


class UnmatchedCloseBracket(CompileError):
    def __init__(self, position: int):
        super().__init__(f"Unmatched closing bracket at position {position}", position)


class UnmatchedOpenBracket(CompileError):
    def __init__(self, position: int):
        super().__init__(f"Unmatched opening bracket at position {position}", position)


class DerstandRuntimeError(DerstandError, RuntimeError):
    """Raised when execution cannot continue."""


class InputReadFailure(DerstandRuntimeError):
    pass


class JumpTableOutOfBounds(DerstandRuntimeError):
    """A bracket instruction has no jump table entry.

    Never happens for a program produced by compile(); seeing it means the
    program and jump table disagree.
    """

    def __init__(self, pc: int):
        super().__init__(f"Jump table out of bounds at pc {pc}")
        self.pc = pc


class ProgramNotCompiled(DerstandRuntimeError):
    def __init__(self):
        super().__init__("No runnable program: the last compile failed")


@dataclass
class JumpTable:
    # '[' position -> matching ']' position
    to_close: List[int] = field(default_factory=list)
    # ']' position -> matching '[' position
    to_open: List[int] = field(default_factory=list)

    def clear(self):
        self.to_close.clear()
        self.to_open.clear()

    def link(self, open_pos: int, close_pos: int):
        """Record a bracket pair, growing both lists to cover the pair."""
        size = max(open_pos, close_pos) + 1
        for table in (self.to_close, self.to_open):
            if len(table) < size:
                table.extend([0] * (size - len(table)))
        self.to_close[open_pos] = close_pos
        self.to_open[close_pos] = open_pos


class DerstandInterpreter:
    def __init__(self, tape_size: int = TAPE_SIZE, input_stream: Optional[BinaryIO] = None):
        if tape_size < 1:
            raise ValueError(f"tape_size must be at least 1, got {tape_size}")
        self.tape = np.zeros(tape_size, dtype=np.uint8)
        self.pointer = 0
        self.instructions: List[Instruction] = []
        self.jump_table = JumpTable()
        self.input_queue: List[int] = []
        self.output_buffer = bytearray()
        # None means "read sys.stdin at the time of the read"
        self.input_stream = input_stream
        self._pending: List[int] = []
        self.runnable = True

    @property
    def last_index(self) -> int:
        return len(self.tape) - 1

    @property
    def output_bytes(self) -> bytes:
        return bytes(self.output_buffer)

    def compile(self, source: str):
        """Compile source into the instruction list and jump table.

        Replaces any previously compiled program. Raises CompileError on
        unbalanced brackets, after which execute() refuses to run until a
        compile succeeds.
        """
        self.instructions.clear()
        self.jump_table.clear()
        self.runnable = False

        stack: List[int] = []
        for c in source:
            inst = SYMBOLS.get(c)
            if inst is None:
                continue
            pos = len(self.instructions)
            self.instructions.append(inst)
            if inst is Instruction.JUMP_IF_ZERO:
                stack.append(pos)
            elif inst is Instruction.JUMP_IF_NOT_ZERO:
                if not stack:
                    raise UnmatchedCloseBracket(pos)
                self.jump_table.link(stack.pop(), pos)

        if stack:
            raise UnmatchedOpenBracket(stack[0])

        self.runnable = True

    def queue_input(self, data: Union[bytes, str]):
        """Stage bytes for ',' ahead of the live input stream.

        The queue is consumed from the end: the last byte queued is read first.
        """
        if isinstance(data, str):
            data = data.encode('utf-8')
        self.input_queue.extend(data)

    def execute(self, debug: bool = False) -> str:
        """Run the compiled program and return its output as text.

        The pointer and output buffer are reset; the tape is not.
        """
        if not self.runnable:
            raise ProgramNotCompiled()

        self.pointer = 0
        self.output_buffer.clear()

        pc = 0
        step_count = 0
        end = len(self.instructions)
        while pc < end:
            if debug and step_count < 50:  # Only show first 50 steps
                print(f"Step {step_count:2d}: PC={pc:2d} INST={self.instructions[pc].name} "
                      f"PTR={self.pointer} CELL={self.tape[self.pointer]} MEM={self.tape[:5].tolist()}")
            pc = self._step(pc)
            step_count += 1

        return self.output_bytes.decode('utf-8', errors='replace')

    def _step(self, pc: int) -> int:
        """Execute the instruction at pc and return the next pc."""
        inst = self.instructions[pc]
        tape = self.tape
        ptr = self.pointer

        if inst is Instruction.MOVE_RIGHT:
            if ptr < self.last_index:
                self.pointer = ptr + 1

        elif inst is Instruction.MOVE_LEFT:
            if ptr > 0:
                self.pointer = ptr - 1

        elif inst is Instruction.INCREMENT:
            tape[ptr] = (int(tape[ptr]) + 1) & CELL_MASK

        elif inst is Instruction.DECREMENT:
            tape[ptr] = (int(tape[ptr]) - 1) & CELL_MASK

        elif inst is Instruction.OUTPUT:
            self.output_buffer.append(int(tape[ptr]))

        elif inst is Instruction.INPUT:
            tape[ptr] = self._read_byte()

        elif inst is Instruction.JUMP_IF_ZERO:
            if tape[ptr] == 0:
                if pc >= len(self.jump_table.to_close):
                    raise JumpTableOutOfBounds(pc)
                return self.jump_table.to_close[pc] + 1

        elif inst is Instruction.JUMP_IF_NOT_ZERO:
            if tape[ptr] != 0:
                if pc >= len(self.jump_table.to_open):
                    raise JumpTableOutOfBounds(pc)
                return self.jump_table.to_open[pc] + 1

        elif inst is Instruction.ZERO_CELL:
            tape[ptr] = 0

        elif inst is Instruction.COPY_TO_NEXT:
            if ptr < self.last_index:
                tape[ptr + 1] = tape[ptr]

        elif inst is Instruction.SEEK_HIGH:
            self.pointer = self.last_index

        elif inst is Instruction.SEEK_LOW:
            self.pointer = 0

        return pc + 1

    def _read_byte(self) -> int:
        if self.input_queue:
            return self.input_queue.pop()

        # Remaining UTF-8 bytes of a character read from a text stream
        if self._pending:
            return self._pending.pop()

        stream = self.input_stream if self.input_stream is not None else sys.stdin.buffer
        try:
            chunk = stream.read(1)
        except (OSError, ValueError) as e:
            # ValueError: read on a closed stream
            raise InputReadFailure(f"Input error: {e}") from e
        if not chunk:
            return 0
        if isinstance(chunk, str):
            chunk = chunk.encode("utf-8")
            self._pending.extend(reversed(chunk[1:]))
        return chunk[0]

    def tape_snapshot(self, start: int = 0, end: Optional[int] = None) -> List[int]:
        """Copy of tape[start:end] as plain ints."""
        return self.tape[start:end].tolist()

    def disassemble(self) -> List[str]:
        """One listing line per compiled instruction, brackets with their targets."""
        lines = []
        for pos, inst in enumerate(self.instructions):
            line = f"{pos:5d}: {inst.name:<16} {inst.value}"
            if inst is Instruction.JUMP_IF_ZERO and pos < len(self.jump_table.to_close):
                line += f"  -> {self.jump_table.to_close[pos]}"
            elif inst is Instruction.JUMP_IF_NOT_ZERO and pos < len(self.jump_table.to_open):
                line += f"  -> {self.jump_table.to_open[pos]}"
            lines.append(line)
        return lines
