"""
bitcomp — Structural Editor Tests

Navigation clamping, per-space cursor positions, and the insert/delete
operations that keep every operand pointing at the same content.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from bitcomp.cpu.alu import EMPTY_WORD, get_bool_byte, get_int, make_word
from bitcomp.editor.cursor import Cursor
from bitcomp.mem.memory import Address, AddrSpace, Memory

CODE = AddrSpace.CODE
DATA = AddrSpace.DATA

RETURN = make_word(1, 15)


def memory(code=(), data=()) -> Memory:
    mem = Memory()
    for i, word in enumerate(code):
        mem.words(CODE)[i] = word
    for i, value in enumerate(data):
        mem.words(DATA)[i] = get_bool_byte(value)
    return mem


def values(mem, space=DATA):
    return [get_int(w) for w in mem.words(space)]


# ═══════════════════════════════════════════════
# Navigation and primitive edits
# ═══════════════════════════════════════════════

class TestNavigation:

    def test_clamped_at_edges(self):
        cur = Cursor(Memory())
        cur.decrease_x()
        cur.decrease_y()
        assert (cur.x, cur.y) == (0, 0)
        for _ in range(20):
            cur.increase_x()
            cur.increase_y()
        assert (cur.x, cur.y) == (7, 14)
        assert cur.absolute_bit_index == 14 * 8 + 7

    def test_each_space_keeps_its_position(self):
        cur = Cursor(Memory())
        cur.increase_y()
        cur.increase_y()
        cur.increase_x()
        cur.switch_address_space()
        assert cur.addr_space == DATA
        assert (cur.x, cur.y) == (0, 0)
        cur.switch_address_space()
        assert (cur.x, cur.y) == (1, 2)
        assert cur.address == Address(CODE, 2)

    def test_word_jumps(self):
        cur = Cursor(Memory())
        cur.go_to_end_of_word()
        assert (cur.x, cur.y) == (7, 0)
        cur.go_to_end_of_word()
        assert (cur.x, cur.y) == (7, 1)
        cur.go_to_beginning_of_word()
        assert (cur.x, cur.y) == (0, 1)
        cur.go_to_beginning_of_word()
        assert (cur.x, cur.y) == (0, 0)
        cur.go_to_beginning_of_next_word()
        assert (cur.x, cur.y) == (0, 1)

    def test_go_to_instructions_address(self):
        cur = Cursor(memory([make_word(0, 5)]))
        cur.go_to_instructions_address()
        assert cur.address == Address(DATA, 5)
        # Following from DATA does nothing
        cur.go_to_instructions_address()
        assert cur.address == Address(DATA, 5)

    def test_go_to_port_is_ignored(self):
        cur = Cursor(memory([RETURN]))
        cur.go_to_instructions_address()
        assert cur.address == Address(CODE, 0)


class TestPrimitiveEdits:

    def test_switch_bit(self):
        mem = Memory()
        cur = Cursor(mem)
        cur.increase_x()
        cur.switch_bit()
        assert get_int(mem.words(CODE)[0]) == 0b01000000
        assert cur.get_bit()
        cur.switch_bit()
        assert mem.words(CODE)[0] == EMPTY_WORD

    def test_set_and_erase_word(self):
        mem = Memory()
        cur = Cursor(mem)
        cur.set_word(make_word(2, 3))
        assert cur.get_word() == make_word(2, 3)
        cur.erase_word()
        assert cur.get_word() == EMPTY_WORD

    def test_move_word_down_cursor_follows(self):
        mem = memory([make_word(0, 1), make_word(0, 2)])
        cur = Cursor(mem)
        cur.move_word_down()
        assert mem.words(CODE)[:2] == [make_word(0, 2), make_word(0, 1)]
        assert cur.y == 1
        cur.move_word_up()
        assert mem.words(CODE)[:2] == [make_word(0, 1), make_word(0, 2)]
        assert cur.y == 0

    def test_move_word_at_edge_is_noop(self):
        mem = memory([make_word(0, 1)])
        cur = Cursor(mem)
        cur.move_word_up()
        assert mem.words(CODE)[0] == make_word(0, 1)

    def test_write_char_only_in_data(self):
        mem = Memory()
        cur = Cursor(mem)
        cur.write_char('A')
        assert mem.words(CODE)[0] == EMPTY_WORD
        cur.switch_address_space()
        cur.write_char('A')
        cur.write_char('z')
        assert values(mem)[:2] == [65, 122]
        assert cur.y == 2


# ═══════════════════════════════════════════════
# Structural edits
# ═══════════════════════════════════════════════

class TestInsert:

    def test_code_insert_patches_jumps(self):
        mem = memory([make_word(0, 0), make_word(4, 3), make_word(6, 1), RETURN])
        cur = Cursor(mem)
        assert cur.insert_word(Address(CODE, 1))
        assert mem.words(CODE)[:5] == [
            make_word(0, 0),     # DATA operand untouched
            EMPTY_WORD,
            make_word(4, 4),
            make_word(6, 2),
            RETURN,              # LAST_ADDRESS is never patched
        ]

    def test_data_insert_patches_operands(self):
        mem = memory([make_word(0, 0), make_word(2, 1), RETURN], [10, 20])
        cur = Cursor(mem)
        assert cur.insert_word(Address(DATA, 0))
        assert mem.words(CODE)[:3] == [make_word(0, 1), make_word(2, 2), RETURN]
        assert values(mem)[:3] == [0, 10, 20]

    def test_insert_at_cursor(self):
        mem = memory([make_word(0, 1), RETURN], [0, 5])
        cur = Cursor(mem)
        cur.switch_address_space()
        cur.increase_y()
        assert cur.insert_word()
        assert mem.words(CODE)[0] == make_word(0, 2)
        assert values(mem)[2] == 5

    def test_bound_address_rejects_insert(self):
        mem = memory([make_word(7, 2), RETURN], [1, 2, 3])
        before = mem.snapshot()
        cur = Cursor(mem)
        assert not cur.insert_word(Address(DATA, 0))
        assert mem.snapshot() == before
        assert cur.insert_word(Address(DATA, 3))

    def test_last_xor_binds_data_7(self):
        mem = memory([make_word(7, 15), RETURN])
        cur = Cursor(mem)
        assert not cur.insert_word(Address(DATA, 7))
        assert cur.insert_word(Address(DATA, 8))

    def test_three_bit_operand_overflow_rejected(self):
        mem = memory([make_word(10, 7), RETURN])
        before = mem.snapshot()
        assert not Cursor(mem).insert_word(Address(DATA, 3))
        assert mem.snapshot() == before

    def test_full_space_rejected(self):
        mem = memory([make_word(11, 0)] * 15)
        before = mem.snapshot()
        assert not Cursor(mem).insert_word(Address(CODE, 3))
        assert mem.snapshot() == before

    def test_redundant_slot_is_reclaimed(self):
        mem = memory([make_word(0, 3), make_word(2, 14), RETURN],
                     [0, 0, 0, 7] + [0] * 10 + [5])
        cur = Cursor(mem)
        assert cur.last_redundant_address(DATA) == Address(DATA, 13)
        assert cur.insert_word(Address(DATA, 2))
        assert mem.words(CODE)[:3] == [make_word(0, 4), make_word(2, 14), RETURN]
        assert values(mem)[4] == 7
        assert values(mem)[14] == 5

    def test_code_redundant_slot_needs_non_empty_predecessor(self):
        code = [make_word(0, 0), RETURN] + [EMPTY_WORD] * 12 + [make_word(11, 0)]
        mem = memory(code)
        cur = Cursor(mem)
        assert cur.last_redundant_address(CODE) == Address(CODE, 2)

    def test_redundant_slot_below_insert_point_rejects(self):
        code = [make_word(0, 0), RETURN] + [EMPTY_WORD] * 12 + [make_word(11, 0)]
        mem = memory(code)
        before = mem.snapshot()
        assert not Cursor(mem).insert_word(Address(CODE, 5))
        assert mem.snapshot() == before


class TestDelete:

    def test_insert_then_delete_is_identity(self):
        mem = memory([make_word(0, 0), make_word(2, 1), make_word(4, 0), RETURN],
                     [10, 20])
        before = mem.snapshot()
        cur = Cursor(mem)
        for adr in (Address(DATA, 0), Address(CODE, 1), Address(DATA, 1)):
            assert cur.insert_word(adr)
            assert cur.delete_word(adr)
            assert mem.snapshot() == before

    def test_delete_patches_operands(self):
        mem = memory([make_word(0, 3), make_word(4, 3), RETURN, make_word(11, 3)],
                     [0, 0, 0, 9])
        cur = Cursor(mem)
        assert cur.delete_word(Address(DATA, 1))
        assert mem.words(CODE)[0] == make_word(0, 2)
        assert mem.words(CODE)[1] == make_word(4, 3)
        assert values(mem)[2] == 9

    def test_delete_used_slot_clears_it(self):
        mem = memory([make_word(0, 4), RETURN], [0, 0, 0, 0, 9, 8])
        cur = Cursor(mem)
        assert not cur.delete_word(Address(DATA, 4))
        assert values(mem)[4:6] == [0, 8]
        assert mem.words(CODE)[0] == make_word(0, 4)

    def test_delete_referenced_empty_slot_is_kept(self):
        mem = memory([make_word(0, 4), RETURN])
        before = mem.snapshot()
        assert not Cursor(mem).delete_word(Address(DATA, 4))
        assert mem.snapshot() == before

    def test_bound_address_rejects_delete(self):
        mem = memory([make_word(7, 2), RETURN])
        before = mem.snapshot()
        cur = Cursor(mem)
        assert not cur.delete_word(Address(DATA, 1))
        assert mem.snapshot() == before
        assert cur.delete_word(Address(DATA, 5))

    def test_delete_shifts_code_up(self):
        mem = memory([make_word(0, 0), EMPTY_WORD, make_word(4, 2), RETURN])
        cur = Cursor(mem)
        cur.increase_y()
        assert cur.delete_word()
        assert mem.words(CODE)[:4] == [make_word(0, 0), make_word(4, 1), RETURN, EMPTY_WORD]
