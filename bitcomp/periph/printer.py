"""
bitcomp — Printer Peripheral (DATA port at LAST_ADDRESS)

Every word written to DATA[LAST_ADDRESS] lands on the printer: PRINT
copies a data word there, and the halting WRITE sends the register there
as the program's return value. Reading the port returns a word from the
input source.

Input sources:
  - None (default): reads return the empty word, so stepping stays a
    pure function of pc, register and memory
  - random: a fresh random word per read
  - any callable returning an int or a word
"""

import random
from typing import Callable, List, Optional, Union

from ..config import WORD_SIZE
from ..cpu.alu import Word, EMPTY_WORD, get_bool_byte, get_int, word_to_str


class PrinterPeripheral:
    """Printer / input model wired onto the memory I/O port.

    `output` keeps every printed word in order. An empty-line marker
    (None) separates consecutive runs.
    """

    def __init__(self, input_source: Optional[Callable[[], Union[int, Word]]] = None):
        self.output: List[Optional[Word]] = []
        self.input_source = input_source

    def register(self, memory):
        """Register port handlers with the memory system."""
        memory.register_io_handler(self._read_port, self._write_port)

    # --- Port handlers ---

    def _read_port(self) -> Word:
        if self.input_source is None:
            return EMPTY_WORD
        value = self.input_source()
        if isinstance(value, int):
            return get_bool_byte(value)
        return tuple(value)

    def _write_port(self, word: Word):
        self.output.append(tuple(word))

    # --- Output access ---

    def print_empty_line(self):
        self.output.append(None)

    @property
    def last(self) -> Optional[Word]:
        for word in reversed(self.output):
            if word is not None:
                return word
        return None

    def values(self) -> List[int]:
        """Printed words as unsigned ints (separators dropped)."""
        return [get_int(w) for w in self.output if w is not None]

    def render(self) -> str:
        """Printed paper: one word per line, blank line between runs."""
        lines = []
        for word in self.output:
            if word is None:
                lines.append('')
            else:
                lines.append(f"{word_to_str(word)}  {get_int(word):3d}")
        return '\n'.join(lines)

    def reset(self):
        self.output.clear()


def random_input() -> int:
    return random.getrandbits(WORD_SIZE)
