"""
bitcomp — tiny two-space word computer with a structural editor.

    from bitcomp import Computer
    comp = Computer()
    comp.load_image('program.ram')
    print(comp.run().reason)
"""

__version__ = "1.0.0"

from .emu import Computer, StopReason, RunResult, MachineView
from .mem.memory import Address, AddrSpace, ImageLoadError, Memory
from .cpu.decoder import decode, disassemble

__all__ = [
    'Computer', 'StopReason', 'RunResult', 'MachineView',
    'Address', 'AddrSpace', 'ImageLoadError', 'Memory',
    'decode', 'disassemble',
]
