"""
bitcomp — Two-Space Word Memory with I/O Port Routing

Memory map (per address space, index = operand nibble):
  0 .. 14   storage slots (RAM_SIZE words)
  15        LAST_ADDRESS — the I/O port, not backed by storage

Port behaviour:
  DATA write  → routed to the registered write handler (printer)
  DATA read   → routed to the registered read handler (input), or an
                empty word when nothing is registered
  CODE read   → empty word
  CODE write  → silently dropped

Memory is fixed-size for the lifetime of the process. Both the execution
engine (data writes) and the structural editor (bit, word and shift
edits) mutate it in place; snapshot()/restore() let a run be undone.

Memory image text format (load_image / to_text):
  - one word per line, CODE slots first, then DATA slots
  - lines that are empty or start with '#' are skipped
  - '*' is a set bit, any other character is clear
  - only the first WORD_SIZE characters count; missing bits are zero
  - loading stops once both spaces are full or the input ends
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from ..config import (
    RAM_SIZE, LAST_ADDRESS, ADDRESS_MASK, WORD_SIZE,
    ONE_CHAR, ZERO_CHAR, COMMENT_CHAR, SAVE_FILE_NAME,
)
from ..cpu.alu import Word, EMPTY_WORD, get_bool_nibble, str_to_word, word_to_str

log = logging.getLogger(__name__)


class AddrSpace(Enum):
    CODE = 'CODE'
    DATA = 'DATA'
    NONE = 'NONE'


@dataclass(frozen=True)
class Address:
    """A tagged address: which space, and the operand-nibble index."""
    space: AddrSpace
    index: int

    def __post_init__(self):
        if not 0 <= self.index <= ADDRESS_MASK:
            raise ValueError(f"Address index out of range: {self.index}")

    @property
    def bits(self) -> Word:
        return get_bool_nibble(self.index)

    @property
    def is_port(self) -> bool:
        return self.index == LAST_ADDRESS

    def __str__(self) -> str:
        return f"{self.space.value}[{self.index}]"


NO_ADDRESS = Address(AddrSpace.NONE, 0)


class ImageLoadError(Exception):
    """Raised when a memory image source cannot be opened."""
    pass


Snapshot = Tuple[Tuple[Word, ...], Tuple[Word, ...]]


class Memory:
    """CODE and DATA word arrays plus the port at LAST_ADDRESS.

    Peripherals hook the DATA port through register_io_handler(); the
    printer is the usual write handler.
    """

    def __init__(self):
        self.state: Dict[AddrSpace, List[Word]] = {
            AddrSpace.CODE: [EMPTY_WORD] * RAM_SIZE,
            AddrSpace.DATA: [EMPTY_WORD] * RAM_SIZE,
        }
        self._io_read_handler: Optional[Callable[[], Word]] = None
        self._io_write_handler: Optional[Callable[[Word], None]] = None

    # --- Core read/write ---

    def get(self, adr: Address) -> Word:
        """Read the word at adr.

        Reads of the port are routed; NONE is never dereferenced.
        """
        words = self._words(adr.space)
        if adr.is_port:
            if adr.space == AddrSpace.DATA and self._io_read_handler:
                return _check_word(self._io_read_handler())
            return EMPTY_WORD
        return words[adr.index]

    def set(self, adr: Address, word: Word):
        """Write word to adr. DATA port writes go to the write handler."""
        words = self._words(adr.space)
        word = _check_word(word)
        if adr.is_port:
            if adr.space == AddrSpace.DATA and self._io_write_handler:
                self._io_write_handler(word)
            return
        words[adr.index] = word

    def words(self, space: AddrSpace) -> List[Word]:
        """The live slot list of a space (mutations are visible)."""
        return self._words(space)

    def _words(self, space: AddrSpace) -> List[Word]:
        if space == AddrSpace.NONE:
            raise ValueError("Address space NONE cannot be dereferenced")
        return self.state[space]

    def clear(self):
        for space in (AddrSpace.CODE, AddrSpace.DATA):
            self.state[space][:] = [EMPTY_WORD] * RAM_SIZE

    # --- I/O port registration ---

    def register_io_handler(self,
                            read_fn: Optional[Callable[[], Word]] = None,
                            write_fn: Optional[Callable[[Word], None]] = None):
        """Register handlers for the DATA port (index LAST_ADDRESS).

        Args:
            read_fn: Callable() -> Word, the value a program reads
            write_fn: Callable(word) -> None, receives printed/returned words
        """
        if read_fn:
            self._io_read_handler = read_fn
        if write_fn:
            self._io_write_handler = write_fn

    # --- Snapshots (run atomicity) ---

    def snapshot(self) -> Snapshot:
        """Capture CODE and DATA contents."""
        return (tuple(self.state[AddrSpace.CODE]),
                tuple(self.state[AddrSpace.DATA]))

    def restore(self, snap: Snapshot):
        """Put back contents captured by snapshot()."""
        code, data = snap
        self.state[AddrSpace.CODE][:] = list(code)
        self.state[AddrSpace.DATA][:] = list(data)

    def diff_snapshots(self, snap_a: Snapshot,
                       snap_b: Snapshot) -> Dict[Address, Tuple[Word, Word]]:
        """Compare two snapshots, return {address: (old, new)} for changes."""
        changes = {}
        for space, words_a, words_b in ((AddrSpace.CODE, snap_a[0], snap_b[0]),
                                        (AddrSpace.DATA, snap_a[1], snap_b[1])):
            for i, (old, new) in enumerate(zip(words_a, words_b)):
                if old != new:
                    changes[Address(space, i)] = (old, new)
        return changes

    # --- Image load/save ---

    def load_lines(self, lines: Iterable[str]) -> int:
        """Fill CODE then DATA from image lines. Returns words loaded."""
        address = 0
        for line in lines:
            if address >= 2 * RAM_SIZE:
                break
            line = line.rstrip('\r\n')
            if not line or line.startswith(COMMENT_CHAR):
                continue
            word = str_to_word(line, ONE_CHAR)
            if address < RAM_SIZE:
                self.state[AddrSpace.CODE][address] = word
            else:
                self.state[AddrSpace.DATA][address - RAM_SIZE] = word
            address += 1
        return address

    def load_text(self, text: str) -> int:
        """Load image text. Slots past a short image keep their content."""
        return self.load_lines(text.splitlines())

    def load_image(self, filepath) -> int:
        """Load a memory image file. Returns the number of words loaded.

        Raises:
            ImageLoadError: the file cannot be opened or read
        """
        path = Path(filepath)
        try:
            text = path.read_text(encoding='utf-8', errors='replace')
        except OSError as e:
            log.warning("Invalid filename '%s'. Aborting ram load.", path)
            raise ImageLoadError(f"Cannot open memory image '{path}': {e}") from e
        count = self.load_text(text)
        log.info("Loaded %d words from %s", count, path)
        return count

    def to_text(self) -> str:
        """Serialize CODE and DATA in the image format."""
        lines = [f"{COMMENT_CHAR} code"]
        lines += [word_to_str(w, ONE_CHAR, ZERO_CHAR) for w in self.state[AddrSpace.CODE]]
        lines.append(f"{COMMENT_CHAR} data")
        lines += [word_to_str(w, ONE_CHAR, ZERO_CHAR) for w in self.state[AddrSpace.DATA]]
        return '\n'.join(lines) + '\n'

    def save_image(self, filepath) -> Path:
        """Write the image to filepath and return the path."""
        path = Path(filepath)
        path.write_text(self.to_text(), encoding='utf-8')
        log.info("Saved memory image to %s", path)
        return path

    # --- Dump ---

    def dump(self) -> str:
        """Side-by-side CODE/DATA listing for debugging."""
        lines = []
        for i in range(RAM_SIZE):
            code = word_to_str(self.state[AddrSpace.CODE][i])
            data = word_to_str(self.state[AddrSpace.DATA][i])
            lines.append(f'{i:2d}  {code}  {data}')
        return '\n'.join(lines)


def next_free_path(prefix: str = SAVE_FILE_NAME, directory=None) -> Path:
    """First '<prefix>N' (N = 1, 2, ...) that does not exist yet."""
    base = Path(directory) if directory is not None else Path('.')
    i = 1
    while (base / f"{prefix}{i}").exists():
        i += 1
    return base / f"{prefix}{i}"


def _check_word(word) -> Word:
    word = tuple(bool(b) for b in word)
    if len(word) != WORD_SIZE:
        raise ValueError(f"Word must have {WORD_SIZE} bits, got {len(word)}")
    return word
