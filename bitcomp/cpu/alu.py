"""
bitcomp — Word Primitives + ALU Operations

A word is a tuple of WORD_SIZE bools, most significant bit first:

    bit index   0   1   2   3 | 4   5   6   7
                opcode nibble | operand nibble

Two conversions back to a word:
  get_bool(value, n)   — wraps (keeps the low n bits), used for addresses
  get_bool_byte(value) — clamps into [0, MAX_VALUE], used by ADD/SUB

INC/DEC do not use either for overflow; they wrap explicitly through
inc_wrap/dec_wrap. ADD/SUB saturate while INC/DEC wrap, and both
behaviours are part of the instruction set contract.
"""

from typing import Tuple

from ..config import WORD_SIZE, ADDRESS_SIZE, MAX_VALUE, OPERAND_INDEX

Word = Tuple[bool, ...]

EMPTY_WORD: Word = (False,) * WORD_SIZE


# ══════════════════════════════════════════════
# Conversion
# ══════════════════════════════════════════════

def get_int(bits) -> int:
    """Unsigned value of a bit sequence (MSB first)."""
    value = 0
    for bit in bits:
        value = (value << 1) | (1 if bit else 0)
    return value


def get_bool(value: int, length: int) -> Word:
    """Low `length` bits of value as a bit tuple (wraps)."""
    value &= (1 << length) - 1
    return tuple(bool((value >> (length - 1 - i)) & 1) for i in range(length))


def get_bool_byte(value: int) -> Word:
    """Word for value, clamped into [0, MAX_VALUE]."""
    value = max(0, min(MAX_VALUE, value))
    return get_bool(value, WORD_SIZE)


def get_bool_nibble(value: int) -> Word:
    """Address-width bit tuple, wrapping modulo 2**ADDRESS_SIZE."""
    return get_bool(value, ADDRESS_SIZE)


def make_word(opcode: int, operand: int) -> Word:
    """Assemble a word from an opcode nibble and an operand nibble."""
    return get_bool(opcode, OPERAND_INDEX) + get_bool(operand, ADDRESS_SIZE)


def first_nibble(word: Word) -> Word:
    return tuple(word[:OPERAND_INDEX])


def second_nibble(word: Word) -> Word:
    return tuple(word[OPERAND_INDEX:])


def opcode_of(word: Word) -> int:
    return get_int(first_nibble(word))


def operand_of(word: Word) -> int:
    return get_int(second_nibble(word))


def is_empty(word: Word) -> bool:
    return not any(word)


# ══════════════════════════════════════════════
# Arithmetic
# ══════════════════════════════════════════════

def sadd(a: Word, b: Word) -> Word:
    """Saturating add: a + b clamped at MAX_VALUE."""
    return get_bool_byte(get_int(a) + get_int(b))


def ssub(a: Word, b: Word) -> Word:
    """Saturating subtract: a - b clamped at 0."""
    return get_bool_byte(get_int(a) - get_int(b))


def inc_wrap(a: Word) -> Word:
    """Increment; MAX_VALUE rolls over to 0."""
    value = get_int(a)
    value = 0 if value == MAX_VALUE else value + 1
    return get_bool_byte(value)


def dec_wrap(a: Word) -> Word:
    """Decrement; 0 rolls under to MAX_VALUE."""
    value = get_int(a)
    value = MAX_VALUE if value == 0 else value - 1
    return get_bool_byte(value)


# ══════════════════════════════════════════════
# Logic
# ══════════════════════════════════════════════

def bitwise_not(a: Word) -> Word:
    return tuple(not bit for bit in a)


def bitwise_and(a: Word, b: Word) -> Word:
    return tuple(x and y for x, y in zip(a, b))


def bitwise_or(a: Word, b: Word) -> Word:
    return tuple(x or y for x, y in zip(a, b))


def bitwise_xor(a: Word, b: Word) -> Word:
    return tuple(x != y for x, y in zip(a, b))


def shift(a: Word, delta: int) -> Word:
    """Shift by `delta` positions; positive is towards the MSB.

    Bits shifted in from outside the word are zero.
    """
    out = []
    for i in range(len(a)):
        j = i + delta
        out.append(a[j] if 0 <= j < len(a) else False)
    return tuple(out)


def shift_left(a: Word) -> Word:
    return shift(a, 1)


def shift_right(a: Word) -> Word:
    return shift(a, -1)


# ══════════════════════════════════════════════
# Operand splicing (used by the structural editor)
# ══════════════════════════════════════════════

def operand_fits(value: int, adr_index: int) -> bool:
    """Whether value is representable in the bits from adr_index to the end."""
    return 0 <= value < (1 << (WORD_SIZE - adr_index))


def splice_operand(word: Word, value: int, adr_index: int) -> Word:
    """Replace the bits from adr_index to the end of word with value.

    The opcode part (and, for three-bit operands, the selector bit) is
    kept. Callers check operand_fits() first; out of range values wrap.
    """
    return tuple(word[:adr_index]) + get_bool(value, WORD_SIZE - adr_index)


# ══════════════════════════════════════════════
# Text form
# ══════════════════════════════════════════════

def word_to_str(word: Word, one: str = '*', zero: str = '-') -> str:
    return ''.join(one if bit else zero for bit in word)


def str_to_word(line: str, one: str = '*') -> Word:
    """Parse one image line: `one` is a set bit, anything else is clear.

    Only the first WORD_SIZE characters count; missing bits are zero.
    """
    bits = [c == one for c in line[:WORD_SIZE]]
    bits.extend([False] * (WORD_SIZE - len(bits)))
    return tuple(bits)
