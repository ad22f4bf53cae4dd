"""
bitcomp — Instruction Decoder / Addressing Modes / Disassembly

This module maps an 8-bit word to an Instruction: mnemonic, display
label, addressing mode and first-order operand address(es). Decoding is
total: every one of the 256 bit patterns yields exactly one instruction,
so the engine has no illegal opcodes.

Opcode nibble (bits 0-3):

   0 READ        4 JUMP        8 READ *      12 IF NOT MAX
   1 WRITE       5 IF MAX      9 WRITE *     13 IF NOT MIN
   2 ADD         6 IF MIN     10 INC/DEC     14 LOGIC (alias of 7)
   3 SUB         7 LOGIC      11 PRINT       15 LOGIC (alias of 7)

The LOGIC bank reuses the operand nibble as a selector. The selectors for
INIT, AND and OR equal the data index they hard-wire, and XOR's selector
carries its data index in the low three bits, so XOR with selector 15
hard-wires data[7]. These are the "bound" data addresses: the operand
cannot be relocated, so the editor must not shift those slots.

Addressing modes (two-stage resolution: first-order → effective):
  INH    no operand; effective address NONE
  DIR    operand nibble is a DATA address
  DIRC   operand nibble is a CODE address
  PTR    operand names a DATA slot whose low nibble is the DATA address
  REGC   register low nibble is the CODE address
  REGD   register low nibble is the DATA address
  BIT3   operand low three bits are a DATA address (top bit selects op)
  FIXED  hard-wired DATA address(es)
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, List, Optional, Sequence, Tuple

from ..config import (
    RAM_SIZE, LAST_ADDRESS, MAX_VALUE, OPERAND_INDEX, THREE_BIT_OPERAND_INDEX,
    INIT_OPERAND_INDEX, AND_OPERAND_INDEX, OR_OPERAND_INDEX,
    LAST_XOR_OPERAND_INDEX,
)
from ..mem.memory import Address, AddrSpace, NO_ADDRESS
from .alu import Word, get_int, opcode_of, operand_of, is_empty

# ──────────────────────────────────────────────
# Addressing mode constants
# ──────────────────────────────────────────────

INH   = 'INH'
DIR   = 'DIR'
DIRC  = 'DIRC'
PTR   = 'PTR'
REGC  = 'REGC'
REGD  = 'REGD'
BIT3  = 'BIT3'
FIXED = 'FIXED'

LOGIC_LABEL = 'LOGIC'

# Sentinel mode for opcodes whose operand selects the instruction
_BANK = 'BANK'


# ──────────────────────────────────────────────
# Main opcode table
# ──────────────────────────────────────────────
# Format: opcode -> (mnemonic, label, addressing_mode)

OPCODES = {
    0x0: ('READ',       'READ',       DIR),
    0x1: ('WRITE',      'WRITE',      DIR),
    0x2: ('ADD',        'ADD',        DIR),
    0x3: ('SUB',        'SUB',        DIR),
    0x4: ('JUMP',       'JUMP',       DIRC),
    0x5: ('IF_MAX',     'IF MAX',     DIRC),
    0x6: ('IF_MIN',     'IF MIN',     DIRC),
    0x7: (None,         LOGIC_LABEL,  _BANK),
    0x8: ('READ_PTR',   'READ *',     PTR),
    0x9: ('WRITE_PTR',  'WRITE *',    PTR),
    0xA: (None,         'INC/DEC',    _BANK),
    0xB: ('PRINT',      'PRINT',      DIR),
    0xC: ('IF_NOT_MAX', 'IF NOT MAX', DIRC),
    0xD: ('IF_NOT_MIN', 'IF NOT MIN', DIRC),
    0xE: (None,         LOGIC_LABEL,  _BANK),
    0xF: (None,         LOGIC_LABEL,  _BANK),
}

LOGIC_OPCODE = 0x7
INC_DEC_OPCODE = 0xA


# ──────────────────────────────────────────────
# Operand-selected banks
# ──────────────────────────────────────────────
# Ordered (predicate, mnemonic, mode); the first predicate that accepts
# the operand nibble wins. Each bank's predicates cover 0..15.

LOGIC_BANK: List[Tuple[Callable[[int], bool], str, str]] = [
    (lambda op: op == 0,                  'JUMP_REG', REGC),
    (lambda op: op == INIT_OPERAND_INDEX, 'INIT',     FIXED),
    (lambda op: op == AND_OPERAND_INDEX,  'AND',      FIXED),
    (lambda op: op == OR_OPERAND_INDEX,   'OR',       FIXED),
    (lambda op: op == 4,                  'READ_REG', REGD),
    (lambda op: op == 5,                  'NOT',      INH),
    (lambda op: op == 6,                  'SHL',      INH),
    (lambda op: op == 7,                  'SHR',      INH),
    (lambda op: op >= 8,                  'XOR',      BIT3),
]

INC_DEC_BANK: List[Tuple[Callable[[int], bool], str, str]] = [
    (lambda op: op < 8,  'INC', BIT3),
    (lambda op: op >= 8, 'DEC', BIT3),
]

_BANKS = {
    LOGIC_OPCODE: LOGIC_BANK,
    0xE: LOGIC_BANK,
    0xF: LOGIC_BANK,
    INC_DEC_OPCODE: INC_DEC_BANK,
}

# Hard-wired first-order addresses of the FIXED mode instructions.
FIXED_OPERANDS = {
    'INIT': (Address(AddrSpace.DATA, 0), Address(AddrSpace.DATA, INIT_OPERAND_INDEX)),
    'AND':  (Address(AddrSpace.DATA, AND_OPERAND_INDEX),),
    'OR':   (Address(AddrSpace.DATA, OR_OPERAND_INDEX),),
}

# Write-shaped mnemonics: a write to DATA[LAST_ADDRESS] is the halt signal.
WRITE_SHAPED = frozenset({'WRITE', 'WRITE_PTR'})


@dataclass(frozen=True)
class Instruction:
    """Decoded view of a CODE word. Derived data, never stored."""
    word: Word
    mnemonic: str
    label: str
    mode: str
    first_order: Tuple[Address, ...]
    adr_index: int

    @property
    def adr(self) -> Address:
        """The relocatable (first) first-order address."""
        return self.first_order[0]

    @property
    def operand(self) -> int:
        return operand_of(self.word)


@lru_cache(maxsize=None)
def decode(word: Word) -> Instruction:
    """Decode any word into its instruction. Never fails."""
    word = tuple(bool(b) for b in word)
    opcode = opcode_of(word)
    operand = operand_of(word)
    mnemonic, label, mode = OPCODES[opcode]
    if mode == _BANK:
        for accepts, mnemonic, mode in _BANKS[opcode]:
            if accepts(operand):
                break
    first_order, adr_index = _first_order(mnemonic, mode, operand)
    return Instruction(word, mnemonic, label, mode, first_order, adr_index)


def _first_order(mnemonic: str, mode: str, operand: int):
    if mode in (DIR, PTR):
        return (Address(AddrSpace.DATA, operand),), OPERAND_INDEX
    if mode == DIRC:
        return (Address(AddrSpace.CODE, operand),), OPERAND_INDEX
    if mode == BIT3:
        return (Address(AddrSpace.DATA, operand & 0x7),), THREE_BIT_OPERAND_INDEX
    if mode == FIXED:
        return FIXED_OPERANDS[mnemonic], OPERAND_INDEX
    # INH, REGC, REGD
    return (NO_ADDRESS,), OPERAND_INDEX


def resolve_address(inst: Instruction, reg: Word, memory) -> Address:
    """Second stage: the address the instruction actually reads/writes.

    Pure with respect to memory and register (reads only).
    """
    if inst.mode == PTR:
        pointer = memory.get(inst.adr)
        return Address(AddrSpace.DATA, operand_of(pointer))
    if inst.mode == REGC:
        return Address(AddrSpace.CODE, operand_of(reg))
    if inst.mode == REGD:
        return Address(AddrSpace.DATA, operand_of(reg))
    if inst.mode == FIXED and inst.mnemonic == 'INIT':
        return Address(AddrSpace.DATA, 0)
    return inst.adr


def is_halt_signal(inst: Instruction, effective: Address) -> bool:
    return (inst.mnemonic in WRITE_SHAPED
            and effective.space == AddrSpace.DATA
            and effective.index == LAST_ADDRESS)


# ──────────────────────────────────────────────
# Bound data addresses
# ──────────────────────────────────────────────

def bound_data_index(inst: Instruction) -> Optional[int]:
    """Data index hard-wired by a bound instruction, or None."""
    if inst.mnemonic == 'INIT':
        return INIT_OPERAND_INDEX
    if inst.mnemonic == 'AND':
        return AND_OPERAND_INDEX
    if inst.mnemonic == 'OR':
        return OR_OPERAND_INDEX
    if inst.mnemonic == 'XOR' and inst.adr.index == LAST_XOR_OPERAND_INDEX:
        return LAST_XOR_OPERAND_INDEX
    return None


BOUND_DATA_ADDRESSES = (
    INIT_OPERAND_INDEX, AND_OPERAND_INDEX, OR_OPERAND_INDEX,
    LAST_XOR_OPERAND_INDEX,
)


# ──────────────────────────────────────────────
# Program-level views
# ──────────────────────────────────────────────

def last_non_empty_index(words: Sequence[Word]) -> int:
    """Index of the last non-empty word, -1 if all are empty."""
    for i in range(len(words) - 1, -1, -1):
        if not is_empty(words[i]):
            return i
    return -1


def all_instructions(memory) -> List[Instruction]:
    return [decode(w) for w in memory.words(AddrSpace.CODE)]


def effective_instructions(memory) -> List[Instruction]:
    """Instructions up to and including the last non-empty CODE slot.

    Trailing empty CODE is not part of the program.
    """
    words = memory.words(AddrSpace.CODE)
    return [decode(w) for w in words[:last_non_empty_index(words) + 1]]


def bound_indices(memory) -> frozenset:
    """Data indices bound by some effective instruction."""
    out = set()
    for inst in effective_instructions(memory):
        index = bound_data_index(inst)
        if index is not None:
            out.add(index)
    return frozenset(out)


# ──────────────────────────────────────────────
# Disassembly
# ──────────────────────────────────────────────

def label(word: Word) -> str:
    return decode(word).label


def code(word: Word) -> str:
    """C-like rendering of what the instruction does."""
    inst = decode(word)
    m = inst.mnemonic
    k = inst.adr.index
    if m == 'READ':
        return "reg = input();" if k == LAST_ADDRESS else f"reg = data[{k}];"
    if m == 'WRITE':
        return "return reg;" if k == LAST_ADDRESS else f"data[{k}] = reg;"
    if m == 'ADD':
        return f"reg = sadd(reg, data[{k}]);"
    if m == 'SUB':
        return f"reg = ssub(reg, data[{k}]);"
    if m == 'JUMP':
        return f"goto *labels[{k}];"
    if m == 'IF_MAX':
        return f"if (reg == {MAX_VALUE}) goto *labels[{k}];"
    if m == 'IF_MIN':
        return f"if (reg == 0) goto *labels[{k}];"
    if m == 'IF_NOT_MAX':
        return f"if (reg != {MAX_VALUE}) goto *labels[{k}];"
    if m == 'IF_NOT_MIN':
        return f"if (reg != 0) goto *labels[{k}];"
    if m == 'JUMP_REG':
        return f"goto *labels[reg&{RAM_SIZE}];"
    if m == 'READ_REG':
        return f"reg = data[reg&{RAM_SIZE}];"
    if m == 'INIT':
        return "data[0] = data[1]; reg = data[0];"
    if m == 'AND':
        return f"reg &= data[{AND_OPERAND_INDEX}];"
    if m == 'OR':
        return f"reg |= data[{OR_OPERAND_INDEX}];"
    if m == 'NOT':
        return "reg = ~reg;"
    if m == 'SHL':
        return "reg <<= 1;"
    if m == 'SHR':
        return "reg >>= 1;"
    if m == 'XOR':
        return f"reg ^= data[{k}];"
    if m == 'READ_PTR':
        return f"reg = data[data[{k}]&{RAM_SIZE}];"
    if m == 'WRITE_PTR':
        return f"data[data[{k}]&{RAM_SIZE}] = reg;"
    if m == 'INC':
        return f"data[{k}] = inc(data[{k}]); reg = data[{k}];"
    if m == 'DEC':
        return f"data[{k}] = dec(data[{k}]); reg = data[{k}];"
    # PRINT
    return f"print(data[{k}]);"


def disassemble(word: Word) -> str:
    """Label and code text, e.g. 'READ        reg = data[3];'."""
    return f"{label(word):<11} {code(word)}"


def listing(memory) -> List[str]:
    """Disassembly of the effective program, one line per CODE slot."""
    lines = []
    for i, inst in enumerate(effective_instructions(memory)):
        lines.append(f"{i:2d}: {disassemble(inst.word)}")
    return lines
