"""
bitcomp — Machine Geometry and Format Configuration
===================================================

Every size in the simulator is derived from the constants below. The
machine is tiny: one 8-bit word holds a whole instruction
(opcode nibble + operand nibble), so an operand can name at most 16
addresses. Fifteen of them are storage slots; the sixteenth is the I/O
port (LAST_ADDRESS).

    CODE space   15 words   instructions, addressed by pc and jumps
    DATA space   15 words   values, addressed by operands
    index 15     port       DATA: printer out / input in; CODE: reads empty
"""

# =============================================================================
#  WORD / ADDRESS GEOMETRY
# =============================================================================
WORD_SIZE = 8             # bits per word
ADDRESS_SIZE = 4          # bits per address (operand nibble)
RAM_SIZE = 15             # storage slots per address space
LAST_ADDRESS = 15         # sentinel index: the I/O port, one past the last slot
FIRST_ADDRESS = 0

MAX_VALUE = 2 ** WORD_SIZE - 1      # 255
ADDRESS_MASK = 2 ** ADDRESS_SIZE - 1

# Bit position inside a word where the operand nibble starts.
OPERAND_INDEX = WORD_SIZE - ADDRESS_SIZE
# Three-bit operands (XOR, INC/DEC) skip the operand's top bit.
THREE_BIT_OPERAND_INDEX = OPERAND_INDEX + 1


# =============================================================================
#  BOUND DATA ADDRESSES
#  Logic-bank instructions whose data operand is hard-wired into the
#  encoding. The operand nibble that selects them equals the data index
#  they depend on, so the address cannot be relocated by the editor.
# =============================================================================
INIT_OPERAND_INDEX = 1        # INIT: data[0] = data[1]
AND_OPERAND_INDEX = 2         # AND:  reg &= data[2]
OR_OPERAND_INDEX = 3          # OR:   reg |= data[3]
LAST_XOR_OPERAND_INDEX = 7    # XOR:  reg ^= data[7] (highest three-bit operand)


# =============================================================================
#  MEMORY IMAGE TEXT FORMAT
# =============================================================================
ONE_CHAR = '*'
ZERO_CHAR = '-'
COMMENT_CHAR = '#'
SAVE_FILE_NAME = 'saved-ram-'


# =============================================================================
#  EXECUTION
# =============================================================================
DEFAULT_MAX_STEPS = 100_000   # run() ceiling when the caller gives none
