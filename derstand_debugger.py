#!/usr/bin/env python3
"""
Derstand Step-by-Step Debugger

Shows the step-by-step execution of a Derstand program, displaying the
memory tape, pointer and output after each instruction.
"""

from typing import Optional

from derstand import DerstandError, DerstandInterpreter, Instruction
from derstand_config import DEFAULT_TRACE_STEPS


class DerstandDebugger(DerstandInterpreter):
    """Derstand interpreter with step-by-step tracing."""

    def __init__(self, tape_size=30, show_memory_range=10, max_steps=DEFAULT_TRACE_STEPS, input_stream=None):
        super().__init__(tape_size, input_stream=input_stream)
        self.show_memory_range = show_memory_range
        self.max_steps = max_steps
        self.step_count = 0
        self.pc = 0
        self.hit_step_limit = False

    def debug_run(self, source: str) -> str:
        """Compile source and execute it one traced step at a time."""
        print("🐛 DERSTAND DEBUGGER")
        print(f"Program: {source}")
        print("=" * 80)

        self.compile(source)

        self.pointer = 0
        self.output_buffer.clear()
        self.pc = 0
        self.step_count = 0
        self.hit_step_limit = False

        self._show_state("INITIAL")

        while self.pc < len(self.instructions):
            if self.step_count >= self.max_steps:
                self.hit_step_limit = True
                print(f"\n⚠️ Execution stopped after {self.max_steps} steps (possible infinite loop)")
                break

            inst = self.instructions[self.pc]
            ptr = self.pointer
            before = int(self.tape[ptr])
            self.step_count += 1
            print(f"\nStep {self.step_count}: Execute '{inst.value}' ({inst.name}) at position {self.pc}")

            next_pc = self._step(self.pc)
            print(f"  {self._describe(inst, ptr, before, next_pc)}")
            self.pc = next_pc

            self._show_state(f"AFTER STEP {self.step_count}")

        output = self.output_bytes.decode("utf-8", errors="replace")
        print("\n🎯 FINAL RESULT:")
        print(f"Output: {output!r} → {list(self.output_buffer)}")
        return output

    def _describe(self, inst: Instruction, ptr: int, before: int, next_pc: int) -> str:
        cell = int(self.tape[ptr])
        if inst is Instruction.MOVE_RIGHT or inst is Instruction.MOVE_LEFT:
            if self.pointer == ptr:
                return f"Pointer at boundary, stays at position {ptr}"
            return f"Move pointer → position {self.pointer}"
        if inst is Instruction.INCREMENT:
            return f"Increment cell[{ptr}] → {cell}"
        if inst is Instruction.DECREMENT:
            return f"Decrement cell[{ptr}] → {cell}"
        if inst is Instruction.OUTPUT:
            return f"Output cell[{ptr}] = {cell}"
        if inst is Instruction.INPUT:
            return f"Read input byte {cell} → cell[{ptr}]"
        if inst is Instruction.JUMP_IF_ZERO:
            if before == 0:
                return f"Loop start: cell[{ptr}] = 0, jump to position {next_pc}"
            return f"Loop start: cell[{ptr}] ≠ 0, enter loop"
        if inst is Instruction.JUMP_IF_NOT_ZERO:
            if before != 0:
                return f"Loop end: cell[{ptr}] ≠ 0, jump back to position {next_pc}"
            return f"Loop end: cell[{ptr}] = 0, exit loop"
        if inst is Instruction.ZERO_CELL:
            return f"Zero cell[{ptr}]"
        if inst is Instruction.COPY_TO_NEXT:
            if ptr == self.last_index:
                return f"Copy skipped: cell[{ptr}] is the last cell"
            return f"Copy cell[{ptr}] = {cell} → cell[{ptr + 1}]"
        if inst is Instruction.SEEK_HIGH:
            return f"Seek pointer to last cell → position {self.pointer}"
        return "Seek pointer to first cell → position 0"

    def _tape_window(self) -> range:
        """Cell indices to display, centred on the pointer and kept inside the tape."""
        width = min(self.show_memory_range, len(self.tape))
        start = min(max(0, self.pointer - width // 2), len(self.tape) - width)
        return range(start, start + width)

    def _tape_rows(self):
        window = self._tape_window()
        cells = self.tape_snapshot(window.start, window.stop)
        marker = self.pointer - window.start
        return [
            "Memory:   [" + "|".join(f"{v:3d}" for v in cells) + "]",
            "Pointer:   " + " ".join(" ^ " if i == marker else "   " for i in range(len(cells))),
            "Address:   " + " ".join(f"{i:3d}" for i in window),
        ]

    def _show_state(self, label: str):
        """Show current state of tape, pointer, and program."""
        print(f"\n{label}:")

        program_display = ""
        for i, inst in enumerate(self.instructions):
            if i == self.pc:
                program_display += f"[{inst.value}]"
            else:
                program_display += inst.value
        if self.pc >= len(self.instructions):
            program_display += "[END]"
        print(f"Program:  {program_display}")

        for row in self._tape_rows():
            print(row)

        if self.output_buffer:
            print(f"Output:   {self.output_bytes!r} → {list(self.output_buffer)}")
        else:
            print("Output:   (empty)")


def main(debugger: Optional[DerstandDebugger] = None):
    """Interactive debugger."""
    debugger = debugger or DerstandDebugger(tape_size=20, show_memory_range=8)

    print("🧠 Derstand Step-by-Step Debugger")
    print("Enter 'quit' to exit\n")

    while True:
        print("-" * 60)
        try:
            program = input("Enter Derstand program: ").strip()
        except EOFError:
            break
        if program.lower() in ("quit", "exit"):
            break
        if not program:
            continue

        try:
            print()
            result = debugger.debug_run(program)
            print(f"\n✅ Execution complete. Final output: {result!r}")
        except DerstandError as e:
            print(f"\n❌ Error during execution: {e}")


if __name__ == "__main__":
    main()
