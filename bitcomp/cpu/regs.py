"""
bitcomp — CPU Register Set

Register model:
  pc   — program counter, ADDRESS_SIZE bits, always a CODE index
  reg  — the single WORD_SIZE-bit working register

There are no flags; conditional jumps test the register value directly.
A fresh Registers is created for every run, so nothing a program leaves
in pc/reg survives into editing.
"""

from ..config import ADDRESS_SIZE, FIRST_ADDRESS
from .alu import Word, EMPTY_WORD, get_int, word_to_str


class Registers:
    """Program counter + register."""

    __slots__ = ('pc', 'reg', 'steps')

    def __init__(self):
        self.pc: int = FIRST_ADDRESS   # CODE index (ADDRESS_SIZE bits)
        self.reg: Word = EMPTY_WORD
        self.steps: int = 0            # executed instruction counter

    def increase_pc(self):
        """Advance pc by one, wrapping over the address width."""
        self.pc = (self.pc + 1) % (1 << ADDRESS_SIZE)

    def set_pc(self, index: int):
        self.pc = index % (1 << ADDRESS_SIZE)

    @property
    def reg_value(self) -> int:
        return get_int(self.reg)

    # --- Display ---

    def display(self) -> str:
        """Format register state for trace output."""
        return (f"PC={self.pc:2d} REG={word_to_str(self.reg)} "
                f"({self.reg_value:3d}) STEPS={self.steps}")

    def reset(self):
        """Back to power-on state."""
        self.pc = FIRST_ADDRESS
        self.reg = EMPTY_WORD
        self.steps = 0
