"""
bitcomp — Word Primitive and ALU Tests

Conversions, saturating vs wrapping arithmetic, shifts, and operand
splicing used by the structural editor.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from bitcomp.config import MAX_VALUE, OPERAND_INDEX, THREE_BIT_OPERAND_INDEX
from bitcomp.cpu import alu
from bitcomp.cpu.alu import (
    EMPTY_WORD, get_int, get_bool, get_bool_byte, get_bool_nibble, make_word,
    opcode_of, operand_of,
)


def w(value: int):
    return get_bool_byte(value)


class TestConversion:
    """int <-> bit tuple, MSB first."""

    def test_get_int(self):
        assert get_int((True, False, True)) == 5
        assert get_int(EMPTY_WORD) == 0
        assert get_int((True,) * 8) == MAX_VALUE

    def test_get_bool_wraps(self):
        assert get_bool(5, 4) == (False, True, False, True)
        assert get_bool(17, 4) == get_bool(1, 4)
        assert get_bool_nibble(16) == get_bool_nibble(0)

    def test_get_bool_byte_clamps(self):
        assert get_int(get_bool_byte(300)) == MAX_VALUE
        assert get_int(get_bool_byte(-4)) == 0
        assert get_int(get_bool_byte(77)) == 77

    def test_make_word_fields(self):
        word = make_word(0xA, 0x9)
        assert opcode_of(word) == 0xA
        assert operand_of(word) == 0x9
        assert get_int(word) == 0xA9


class TestArithmetic:
    """ADD/SUB saturate, INC/DEC wrap."""

    def test_sadd_saturates(self):
        assert get_int(alu.sadd(w(200), w(100))) == MAX_VALUE
        assert get_int(alu.sadd(w(2), w(3))) == 5

    def test_ssub_saturates(self):
        assert get_int(alu.ssub(w(5), w(9))) == 0
        assert get_int(alu.ssub(w(9), w(5))) == 4

    def test_inc_wraps(self):
        assert get_int(alu.inc_wrap(w(MAX_VALUE))) == 0
        assert get_int(alu.inc_wrap(w(41))) == 42

    def test_dec_wraps(self):
        assert get_int(alu.dec_wrap(w(0))) == MAX_VALUE
        assert get_int(alu.dec_wrap(w(43))) == 42


class TestLogic:

    def test_bitwise(self):
        assert get_int(alu.bitwise_and(w(0b1100), w(0b1010))) == 0b1000
        assert get_int(alu.bitwise_or(w(0b1100), w(0b1010))) == 0b1110
        assert get_int(alu.bitwise_xor(w(0b1100), w(0b1010))) == 0b0110
        assert get_int(alu.bitwise_not(w(0))) == MAX_VALUE

    def test_shift_left_drops_msb(self):
        assert get_int(alu.shift_left(w(0b10000001))) == 0b00000010

    def test_shift_right_zero_fills(self):
        assert get_int(alu.shift_right(w(0b10000001))) == 0b01000000

    def test_shift_by_word_size_clears(self):
        assert alu.shift(w(MAX_VALUE), 8) == EMPTY_WORD


class TestOperandSplice:
    """Operand field replacement keeps the opcode (and selector) bits."""

    def test_nibble_operand(self):
        word = alu.splice_operand(make_word(0x4, 3), 9, OPERAND_INDEX)
        assert opcode_of(word) == 0x4
        assert operand_of(word) == 9

    def test_three_bit_operand_keeps_selector(self):
        dec_5 = make_word(0xA, 0b1101)
        word = alu.splice_operand(dec_5, 6, THREE_BIT_OPERAND_INDEX)
        assert operand_of(word) == 0b1110

    def test_operand_fits(self):
        assert alu.operand_fits(14, OPERAND_INDEX)
        assert not alu.operand_fits(16, OPERAND_INDEX)
        assert alu.operand_fits(7, THREE_BIT_OPERAND_INDEX)
        assert not alu.operand_fits(8, THREE_BIT_OPERAND_INDEX)


class TestTextForm:

    def test_word_to_str(self):
        assert alu.word_to_str(w(0b10100000)) == '*-*-----'

    def test_str_to_word_pads_and_truncates(self):
        assert alu.str_to_word('*') == w(0b10000000)
        assert alu.str_to_word('********xyz') == w(MAX_VALUE)
        assert alu.str_to_word('a*b*') == w(0b01010000)
