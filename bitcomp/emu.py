"""
bitcomp — Main Computer Class

Integrates:
  - Registers (cpu/regs.py)
  - Two-space memory (mem/memory.py)
  - Instruction decoder (cpu/decoder.py)
  - ALU operations (cpu/alu.py)
  - Printer on the DATA port (periph/printer.py)
  - Structural editor cursor (editor/cursor.py)

Execution model:
  1. Fetch CODE[pc] (pc at LAST_ADDRESS fetches the empty word)
  2. Decode → resolve the effective address from the register and memory
  3. Advance pc (wrapping), then run the handler; jumps overwrite pc
  4. A write-shaped instruction aimed at DATA[LAST_ADDRESS] performs the
     write and then stops the machine

Termination reasons:
  - HALT:     the program wrote its result to the port
  - CANCEL:   cancel() was called between steps
  - TIMEOUT:  max_steps exceeded
  - BREAK:    a breakpoint pc reached after the first step; ends the run

A run is atomic from the editor's point of view: memory is snapshotted
before the first step and restored after the last one, whatever stopped
it. Only the printer keeps what the run produced.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, FrozenSet, List, Optional, Set, Tuple

from .config import LAST_ADDRESS, MAX_VALUE, DEFAULT_MAX_STEPS
from .cpu.regs import Registers
from .cpu.decoder import (
    Instruction, decode, resolve_address, is_halt_signal, bound_indices,
    disassemble,
)
from .cpu import alu
from .cpu.alu import Word, get_int
from .mem.memory import Memory, Address, AddrSpace, next_free_path
from .periph.printer import PrinterPeripheral
from .editor.cursor import Cursor

log = logging.getLogger(__name__)


class StopReason(Enum):
    HALT = 'HALT'
    CANCEL = 'CANCEL'
    TIMEOUT = 'TIMEOUT'
    BREAK = 'BREAK'


@dataclass
class RunResult:
    """Outcome of one run()."""
    reason: StopReason
    steps: int
    output: List[Word] = field(default_factory=list)
    changes: Dict[Address, Tuple[Word, Word]] = field(default_factory=dict)
    reg: Word = alu.EMPTY_WORD

    @property
    def values(self) -> List[int]:
        return [get_int(w) for w in self.output]


@dataclass(frozen=True)
class MachineView:
    """Read-only snapshot of everything a front end draws."""
    code: Tuple[Word, ...]
    data: Tuple[Word, ...]
    pc: int
    reg: Word
    cursor_bit: int
    cursor_word: int
    addr_space: AddrSpace
    bound: FrozenSet[int]


class _HaltException(Exception):
    pass


class Computer:
    """Tiny two-space word computer with a structural editor.

    Usage:
        comp = Computer()
        comp.load_image('fibonacci')
        result = comp.run(max_steps=1000)
        print(result.reason, comp.printer.values())
    """

    DEFAULT_MAX_STEPS = DEFAULT_MAX_STEPS

    def __init__(self, input_source: Optional[Callable] = None):
        self.regs = Registers()
        self.mem = Memory()

        self.printer = PrinterPeripheral(input_source)
        self.printer.register(self.mem)

        self.cursor = Cursor(self.mem)

        self.run_count = 0
        self._cancelled = False

        # Breakpoints: set of pc values that trigger BREAK
        self._breakpoints: Set[int] = set()

        self._trace = False
        self._trace_output: List[str] = []

        self._dispatch = self._build_dispatch()

    # ══════════════════════════════════════════════
    # Loading / saving
    # ══════════════════════════════════════════════

    def load_image(self, filepath) -> int:
        """Load a memory image file (raises ImageLoadError)."""
        return self.mem.load_image(filepath)

    def load_text(self, text: str) -> int:
        return self.mem.load_text(text)

    def save_image(self, filepath) -> Path:
        return self.mem.save_image(filepath)

    def save_to_free_file(self, directory=None) -> Path:
        """Save to the first unused 'saved-ram-N' name."""
        return self.mem.save_image(next_free_path(directory=directory))

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def step(self) -> bool:
        """Execute one instruction. Returns False once the machine halts.

        Every word decodes to some instruction, so this never fails on
        memory content.
        """
        pc = self.regs.pc
        word = self.mem.get(Address(AddrSpace.CODE, pc))
        inst = decode(word)
        eff = resolve_address(inst, self.regs.reg, self.mem)

        if self._trace:
            self._trace_output.append(
                f"{pc:2d}: {disassemble(word):<42} {self.regs.display()}"
            )
        log.debug("pc=%d %s eff=%s", pc, inst.mnemonic, eff)

        self.regs.increase_pc()
        self.regs.steps += 1
        try:
            self._dispatch[inst.mnemonic](inst, eff)
        except _HaltException:
            log.debug("Halt signal at pc=%d", pc)
            return False
        return True

    def run(self, max_steps: Optional[int] = None,
            on_step: Optional[Callable[['Computer'], None]] = None) -> RunResult:
        """Run until halt, cancel, breakpoint or the step ceiling.

        Args:
            max_steps: Maximum executed instructions before TIMEOUT
            on_step: Called with the computer after each step; may cancel()

        Returns:
            RunResult; memory is back to its pre-run content on return
        """
        if max_steps is None:
            max_steps = self.DEFAULT_MAX_STEPS

        before = self.mem.snapshot()
        if self.run_count > 0:
            self.printer.print_empty_line()
        printed_from = len(self.printer.output)
        self._cancelled = False
        log.info("Run %d started", self.run_count + 1)

        steps = 0
        try:
            while True:
                if steps >= max_steps:
                    reason = StopReason.TIMEOUT
                    break
                # The starting pc never triggers a breakpoint
                if steps > 0 and self.regs.pc in self._breakpoints:
                    reason = StopReason.BREAK
                    break
                running = self.step()
                steps += 1
                if not running:
                    reason = StopReason.HALT
                    break
                if on_step is not None:
                    on_step(self)
                if self._cancelled:
                    reason = StopReason.CANCEL
                    break

            changes = self.mem.diff_snapshots(before, self.mem.snapshot())
            output = [w for w in self.printer.output[printed_from:] if w is not None]
            result = RunResult(reason, steps, output, changes, self.regs.reg)
        finally:
            self.mem.restore(before)
            self.regs = Registers()
            self.run_count += 1

        log.info("Run stopped: %s after %d steps", reason.value, steps)
        return result

    def cancel(self):
        """Ask a running run() to stop before its next step."""
        self._cancelled = True

    # ══════════════════════════════════════════════
    # Breakpoints / trace
    # ══════════════════════════════════════════════

    def add_breakpoint(self, pc: int):
        self._breakpoints.add(pc)

    def remove_breakpoint(self, pc: int):
        self._breakpoints.discard(pc)

    def clear_breakpoints(self):
        self._breakpoints.clear()

    def enable_trace(self, enabled: bool = True):
        self._trace = enabled
        if enabled:
            self._trace_output = []

    def get_trace(self) -> List[str]:
        return self._trace_output

    # ══════════════════════════════════════════════
    # Query surface
    # ══════════════════════════════════════════════

    def view(self) -> MachineView:
        return MachineView(
            code=tuple(self.mem.words(AddrSpace.CODE)),
            data=tuple(self.mem.words(AddrSpace.DATA)),
            pc=self.regs.pc,
            reg=self.regs.reg,
            cursor_bit=self.cursor.x,
            cursor_word=self.cursor.y,
            addr_space=self.cursor.addr_space,
            bound=bound_indices(self.mem),
        )

    def is_bound(self, index: int) -> bool:
        """Whether DATA[index] is hard-wired by an effective instruction."""
        return index in bound_indices(self.mem)

    # ══════════════════════════════════════════════
    # Command surface (editor)
    # ══════════════════════════════════════════════

    def increase_x(self):
        self.cursor.increase_x()

    def decrease_x(self):
        self.cursor.decrease_x()

    def increase_y(self):
        self.cursor.increase_y()

    def decrease_y(self):
        self.cursor.decrease_y()

    def switch_bit(self):
        self.cursor.switch_bit()

    def set_word(self, word: Word):
        self.cursor.set_word(word)

    def switch_address_space(self):
        self.cursor.switch_address_space()

    def insert_word(self, address: Optional[Address] = None) -> bool:
        return self.cursor.insert_word(address)

    def delete_word(self, address: Optional[Address] = None) -> bool:
        return self.cursor.delete_word(address)

    # ══════════════════════════════════════════════
    # Instruction handlers
    # ══════════════════════════════════════════════
    # Handler signature: handler(inst, eff). pc is already advanced.

    def _build_dispatch(self) -> dict:
        """Build mnemonic → handler dispatch table."""
        return {
            # ── Load/Store ──
            'READ':       self._op_read,
            'WRITE':      self._op_write,
            'READ_PTR':   self._op_read,
            'WRITE_PTR':  self._op_write,
            'READ_REG':   self._op_read,
            'INIT':       self._op_init,
            'PRINT':      self._op_print,

            # ── Arithmetic ──
            'ADD':        self._op_add,
            'SUB':        self._op_sub,
            'INC':        self._op_inc,
            'DEC':        self._op_dec,

            # ── Logic ──
            'AND':        self._op_and,
            'OR':         self._op_or,
            'XOR':        self._op_xor,
            'NOT':        self._op_not,
            'SHL':        self._op_shl,
            'SHR':        self._op_shr,

            # ── Branch ──
            'JUMP':       self._op_jump,
            'JUMP_REG':   self._op_jump,
            'IF_MAX':     self._op_if_max,
            'IF_NOT_MAX': self._op_if_not_max,
            'IF_MIN':     self._op_if_min,
            'IF_NOT_MIN': self._op_if_not_min,
        }

    # ── Load/Store ──

    def _op_read(self, inst: Instruction, eff: Address):
        self.regs.reg = self.mem.get(eff)

    def _op_write(self, inst: Instruction, eff: Address):
        self.mem.set(eff, self.regs.reg)
        if is_halt_signal(inst, eff):
            raise _HaltException()

    def _op_init(self, inst: Instruction, eff: Address):
        # data[0] = data[1]; reg = data[0]
        self.mem.set(eff, self.mem.get(inst.first_order[1]))
        self.regs.reg = self.mem.get(eff)

    def _op_print(self, inst: Instruction, eff: Address):
        self.mem.set(Address(AddrSpace.DATA, LAST_ADDRESS), self.mem.get(eff))

    # ── Arithmetic ──

    def _op_add(self, inst: Instruction, eff: Address):
        self.regs.reg = alu.sadd(self.regs.reg, self.mem.get(eff))

    def _op_sub(self, inst: Instruction, eff: Address):
        self.regs.reg = alu.ssub(self.regs.reg, self.mem.get(eff))

    def _op_inc(self, inst: Instruction, eff: Address):
        self.mem.set(eff, alu.inc_wrap(self.mem.get(eff)))
        self.regs.reg = self.mem.get(eff)

    def _op_dec(self, inst: Instruction, eff: Address):
        self.mem.set(eff, alu.dec_wrap(self.mem.get(eff)))
        self.regs.reg = self.mem.get(eff)

    # ── Logic ──

    def _op_and(self, inst: Instruction, eff: Address):
        self.regs.reg = alu.bitwise_and(self.regs.reg, self.mem.get(eff))

    def _op_or(self, inst: Instruction, eff: Address):
        self.regs.reg = alu.bitwise_or(self.regs.reg, self.mem.get(eff))

    def _op_xor(self, inst: Instruction, eff: Address):
        self.regs.reg = alu.bitwise_xor(self.regs.reg, self.mem.get(eff))

    def _op_not(self, inst: Instruction, eff: Address):
        self.regs.reg = alu.bitwise_not(self.regs.reg)

    def _op_shl(self, inst: Instruction, eff: Address):
        self.regs.reg = alu.shift_left(self.regs.reg)

    def _op_shr(self, inst: Instruction, eff: Address):
        self.regs.reg = alu.shift_right(self.regs.reg)

    # ── Branch ──

    def _op_jump(self, inst: Instruction, eff: Address):
        self.regs.set_pc(eff.index)

    def _op_if_max(self, inst: Instruction, eff: Address):
        if self.regs.reg_value >= MAX_VALUE:
            self.regs.set_pc(eff.index)

    def _op_if_not_max(self, inst: Instruction, eff: Address):
        if self.regs.reg_value < MAX_VALUE:
            self.regs.set_pc(eff.index)

    def _op_if_min(self, inst: Instruction, eff: Address):
        if self.regs.reg_value <= 0:
            self.regs.set_pc(eff.index)

    def _op_if_not_min(self, inst: Instruction, eff: Address):
        if self.regs.reg_value > 0:
            self.regs.set_pc(eff.index)
