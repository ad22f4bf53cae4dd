"""
bitcomp — Structural Editor (Cursor)

The cursor is the editing position, independent of execution: one
(bit, word) pair per address space. Switching space keeps the other
pair where it was.

Primitive edits (always legal, clamped at the edges):
  move by one bit / word, toggle or set a bit, overwrite or erase a word,
  swap a word with its neighbour, switch address space.

Structural edits keep every operand pointing at the same content:

  insert(A in S)
    1. DATA only: reject if a bound data index in [A, 7] is in use by an
       effective INIT/AND/OR/XOR-7 instruction (their operand is part of
       the encoding and cannot move).
    2. If S's last slot is used (non-empty or referenced), reclaim the
       highest unused ("redundant") slot above A by deleting it first;
       reject when there is none.
    3. Reject when a shifted operand would not fit its field (three-bit
       operands cannot go past 7).
    4. Increment every first operand in S with index >= A (LAST_ADDRESS
       excluded), shift S[A:] down, clear S[A].

  delete(A in S)
    1. DATA only: reject if a bound data index in [A, 6] is in use.
    2. If A is used, clear it in place and report failure.
    3. Decrement every first operand in S with index > A, shift S[A+1:]
       up, clear the last slot.

Only an instruction's first first-order address is ever patched; INIT's
second operand is a fixed reference.
"""

import logging
from typing import Dict, List, Optional

from ..config import (
    WORD_SIZE, RAM_SIZE, LAST_ADDRESS, LAST_XOR_OPERAND_INDEX,
)
from ..cpu.alu import (
    Word, EMPTY_WORD, get_bool_byte, is_empty, operand_fits, splice_operand,
)
from ..cpu.decoder import decode, effective_instructions, bound_indices
from ..mem.memory import Address, AddrSpace

log = logging.getLogger(__name__)

X = 0  # bit index
Y = 1  # word index


class Cursor:
    """Editing position over a Memory plus the edit operations."""

    def __init__(self, memory):
        self.memory = memory
        self.addr_space = AddrSpace.CODE
        self.position: Dict[AddrSpace, List[int]] = {
            AddrSpace.CODE: [0, 0],
            AddrSpace.DATA: [0, 0],
        }

    # ══════════════════════════════════════════════
    # Address space
    # ══════════════════════════════════════════════

    def switch_address_space(self):
        if self.addr_space == AddrSpace.CODE:
            self.addr_space = AddrSpace.DATA
        else:
            self.addr_space = AddrSpace.CODE

    @property
    def address(self) -> Address:
        return Address(self.addr_space, self.y)

    # ══════════════════════════════════════════════
    # Coordinates
    # ══════════════════════════════════════════════

    @property
    def x(self) -> int:
        return self.position[self.addr_space][X]

    @property
    def y(self) -> int:
        return self.position[self.addr_space][Y]

    @property
    def absolute_bit_index(self) -> int:
        return self.y * WORD_SIZE + self.x

    def set_bit_index(self, bit_index: int):
        self.position[self.addr_space][X] = max(0, min(WORD_SIZE - 1, bit_index))

    def set_word_index(self, word_index: int):
        self.position[self.addr_space][Y] = max(0, min(RAM_SIZE - 1, word_index))

    def increase_x(self):
        if self.x >= WORD_SIZE - 1:
            return
        self.set_bit_index(self.x + 1)

    def decrease_x(self):
        if self.x <= 0:
            return
        self.set_bit_index(self.x - 1)

    def increase_y(self):
        if self.y >= RAM_SIZE - 1:
            return
        self.set_word_index(self.y + 1)

    def decrease_y(self):
        if self.y <= 0:
            return
        self.set_word_index(self.y - 1)

    def go_to_address(self, adr: Address):
        """Jump to the first bit of adr, switching space if needed."""
        if adr.space == AddrSpace.NONE or adr.index >= RAM_SIZE:
            return
        self.addr_space = adr.space
        self.set_bit_index(0)
        self.set_word_index(adr.index)

    def go_to_end_of_word(self):
        if self.x == WORD_SIZE - 1:
            self.increase_y()
        self.set_bit_index(WORD_SIZE - 1)

    def go_to_beginning_of_word(self):
        if self.x == 0:
            self.decrease_y()
        self.set_bit_index(0)

    def go_to_beginning_of_next_word(self):
        if self.y == RAM_SIZE - 1:
            self.set_bit_index(WORD_SIZE - 1)
        else:
            self.increase_y()
            self.set_bit_index(0)

    def go_to_instructions_address(self):
        """Follow the operand of the instruction under the cursor."""
        if self.addr_space == AddrSpace.DATA:
            return
        inst = decode(self.get_word())
        self.go_to_address(inst.adr)

    # ══════════════════════════════════════════════
    # Bit / word edits
    # ══════════════════════════════════════════════

    def get_bit(self) -> bool:
        return self.get_word()[self.x]

    def set_bit(self, bit: bool):
        word = list(self.get_word())
        word[self.x] = bool(bit)
        self.set_word(tuple(word))

    def switch_bit(self):
        self.set_bit(not self.get_bit())

    def get_word(self) -> Word:
        return self.memory.get(self.address)

    def set_word(self, word: Word):
        self.memory.set(self.address, word)

    def erase_word(self):
        self.set_word(EMPTY_WORD)

    def write_char(self, ch: str):
        """Store a character code in the DATA word and move down."""
        if self.addr_space != AddrSpace.DATA:
            return
        self.set_word(get_bool_byte(ord(ch)))
        self.increase_y()

    def move_word_up(self):
        """Swap with the word above; the cursor follows the word."""
        if self.y <= 0:
            return
        self._swap(self.y, self.y - 1)
        self.decrease_y()

    def move_word_down(self):
        """Swap with the word below; the cursor follows the word."""
        if self.y >= RAM_SIZE - 1:
            return
        self._swap(self.y, self.y + 1)
        self.increase_y()

    def _swap(self, i: int, j: int):
        words = self.memory.words(self.addr_space)
        words[i], words[j] = words[j], words[i]

    # ══════════════════════════════════════════════
    # Structural edits
    # ══════════════════════════════════════════════

    def insert_word(self, adr: Optional[Address] = None) -> bool:
        """Insert an empty word at adr (default: under the cursor).

        Returns whether the insert happened. On rejection memory is
        left as it was.
        """
        if adr is None:
            adr = self.address
        if not self._editable(adr):
            return False
        space, index = adr.space, adr.index

        if space == AddrSpace.DATA and self._bound_conflict(index, LAST_XOR_OPERAND_INDEX):
            log.info("Insert at %s rejected: bound data address in the way", adr)
            return False

        before = self.memory.snapshot()
        last = Address(space, RAM_SIZE - 1)
        if self.address_used(last):
            redundant = self.last_redundant_address(space)
            if redundant is None or redundant.index <= index:
                log.info("Insert at %s rejected: %s is full", adr, space.value)
                return False
            log.debug("Reclaiming redundant %s before insert at %s", redundant, adr)
            if not self.delete_word(redundant):
                self.memory.restore(before)
                return False

        if not self._shift_fits(space, index, 1):
            self.memory.restore(before)
            log.info("Insert at %s rejected: an operand would overflow its field", adr)
            return False

        self._shift_operands(space, index, 1)
        words = self.memory.words(space)
        for i in range(RAM_SIZE - 1, index, -1):
            words[i] = words[i - 1]
        words[index] = EMPTY_WORD
        log.debug("Inserted word at %s", adr)
        return True

    def delete_word(self, adr: Optional[Address] = None) -> bool:
        """Delete the word at adr (default: under the cursor).

        A used slot is cleared in place instead and False is returned.
        """
        if adr is None:
            adr = self.address
        if not self._editable(adr):
            return False
        space, index = adr.space, adr.index

        if space == AddrSpace.DATA and self._bound_conflict(index, LAST_XOR_OPERAND_INDEX - 1):
            log.info("Delete at %s rejected: bound data address in the way", adr)
            return False

        if self.address_used(adr):
            self.memory.set(adr, EMPTY_WORD)
            log.info("Delete at %s: slot in use, cleared in place", adr)
            return False

        self._shift_operands(space, index + 1, -1)
        words = self.memory.words(space)
        for i in range(index, RAM_SIZE - 1):
            words[i] = words[i + 1]
        words[RAM_SIZE - 1] = EMPTY_WORD
        log.debug("Deleted word at %s", adr)
        return True

    # ══════════════════════════════════════════════
    # Usage analysis
    # ══════════════════════════════════════════════

    def address_used(self, adr: Address) -> bool:
        """Whether the slot is non-empty or referenced by the program."""
        if not is_empty(self.memory.get(adr)):
            return True
        return self.address_referenced(adr)

    def address_referenced(self, adr: Address) -> bool:
        for inst in effective_instructions(self.memory):
            if adr in inst.first_order:
                return True
        return False

    def last_redundant_address(self, space: AddrSpace) -> Optional[Address]:
        """Highest unused slot in [1, RAM_SIZE-2], or None.

        In CODE the slot must follow a non-empty word.
        """
        for i in range(RAM_SIZE - 2, 0, -1):
            adr = Address(space, i)
            if self.address_used(adr):
                continue
            if space == AddrSpace.CODE:
                before = self.memory.get(Address(space, i - 1))
                if is_empty(before):
                    continue
            return adr
        return None

    def _bound_conflict(self, index: int, last_index: int) -> bool:
        bound = bound_indices(self.memory)
        return any(i in bound for i in range(index, last_index + 1))

    def _editable(self, adr: Address) -> bool:
        return adr.space != AddrSpace.NONE and adr.index < RAM_SIZE

    # ══════════════════════════════════════════════
    # Operand patching
    # ══════════════════════════════════════════════

    def _patch_targets(self, space: AddrSpace, from_index: int):
        """(code index, instruction) pairs whose first operand moves."""
        targets = []
        for i, inst in enumerate(effective_instructions(self.memory)):
            adr = inst.adr
            if (adr.space == space and adr.index >= from_index
                    and adr.index != LAST_ADDRESS):
                targets.append((i, inst))
        return targets

    def _shift_fits(self, space: AddrSpace, from_index: int, delta: int) -> bool:
        for _, inst in self._patch_targets(space, from_index):
            new_index = inst.adr.index + delta
            if new_index == LAST_ADDRESS or not operand_fits(new_index, inst.adr_index):
                return False
        return True

    def _shift_operands(self, space: AddrSpace, from_index: int, delta: int):
        code = self.memory.words(AddrSpace.CODE)
        for i, inst in self._patch_targets(space, from_index):
            new_index = inst.adr.index + delta
            code[i] = splice_operand(code[i], new_index, inst.adr_index)
            log.debug("Patched CODE[%d] operand %d -> %d", i, inst.adr.index, new_index)
