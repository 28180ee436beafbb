"""
Opening book: exact scores of every early position, precomputed offline.

The book maps the canonical key of each position with at most `max_depth`
plies to its exact score. It is immutable once loaded and safe to share
between threads.

Binary layout (little endian):

    header   16 bytes   magic "C4OB" | version u16 | width u8 | height u8 |
                        max_depth u8 | reserved 3 bytes | record_count u32
    records   9 bytes   key u64 | score i8        (record_count times,
                                                   strictly ascending keys)

Any deviation from this layout is a BookLoadError at load time; lookups
themselves never fail.
"""

import logging
import threading
from importlib import resources
from pathlib import Path
from typing import Iterable, Optional, Union

import numpy as np

from connect_four_solver.config import SOLVER_CONFIG
from connect_four_solver.errors import BookLoadError
from connect_four_solver.game.position import Position, WIDTH, HEIGHT, BOARD_SIZE


logger = logging.getLogger(__name__)

BOOK_MAGIC = b'C4OB'
BOOK_VERSION = 1

HEADER_DTYPE = np.dtype([
    ('magic', 'S4'),
    ('version', '<u2'),
    ('width', 'u1'),
    ('height', 'u1'),
    ('max_depth', 'u1'),
    ('reserved', 'V3'),
    ('count', '<u4'),
])
RECORD_DTYPE = np.dtype([
    ('key', '<u8'),
    ('score', 'i1'),
])

# Largest score magnitude of any position: a win with the player's first stone
_SCORE_LIMIT = (BOARD_SIZE + 1) // 2


class OpeningBook:
    """
    Read-only table of exact scores for positions up to `max_depth` plies.

    Lookups are binary searches over a sorted numpy array of canonical keys.
    """

    def __init__(self, keys: np.ndarray, scores: np.ndarray, max_depth: int):
        """
        Args:
            keys: Canonical keys, strictly ascending (uint64)
            scores: Exact scores aligned with `keys` (int8)
            max_depth: Deepest ply count covered by the book
        """
        self.keys = np.ascontiguousarray(keys, dtype=np.uint64)
        self.scores = np.ascontiguousarray(scores, dtype=np.int8)
        self.max_depth = int(max_depth)

        self.keys.flags.writeable = False
        self.scores.flags.writeable = False

    @classmethod
    def from_entries(cls, entries: Union[dict, Iterable[tuple[int, int]]], max_depth: int) -> 'OpeningBook':
        """
        Build a book from (canonical key, score) pairs in any order.

        Args:
            entries: Mapping or iterable of (key, score)
            max_depth: Deepest ply count covered by the entries
        """
        if isinstance(entries, dict):
            entries = entries.items()
        records = np.array(sorted(entries), dtype=RECORD_DTYPE)

        if len(records) > 1 and not np.all(records['key'][1:] > records['key'][:-1]):
            raise ValueError("opening book entries contain duplicate keys")

        return cls(records['key'], records['score'], max_depth)

    @classmethod
    def from_bytes(cls, data: bytes) -> 'OpeningBook':
        """
        Parse a book from its binary representation.

        Raises:
            BookLoadError: If the data is truncated, corrupt, mis-versioned,
                built for another board, or not sorted by key
        """
        header_size = HEADER_DTYPE.itemsize
        if len(data) < header_size:
            raise BookLoadError(f"opening book is truncated: {len(data)} bytes, header needs {header_size}")

        header = np.frombuffer(data, dtype=HEADER_DTYPE, count=1)[0]
        if bytes(header['magic']) != BOOK_MAGIC:
            raise BookLoadError(f"not an opening book: bad magic {bytes(header['magic'])!r}")
        if int(header['version']) != BOOK_VERSION:
            raise BookLoadError(
                f"unsupported opening book version {int(header['version'])}, expected {BOOK_VERSION}"
            )
        if (int(header['width']), int(header['height'])) != (WIDTH, HEIGHT):
            raise BookLoadError(
                f"opening book built for a {int(header['width'])}x{int(header['height'])} board, "
                f"expected {WIDTH}x{HEIGHT}"
            )

        max_depth = int(header['max_depth'])
        if max_depth > BOARD_SIZE:
            raise BookLoadError(f"opening book depth {max_depth} exceeds the board size")

        count = int(header['count'])
        expected_size = header_size + count * RECORD_DTYPE.itemsize
        if len(data) != expected_size:
            raise BookLoadError(
                f"opening book size mismatch: {len(data)} bytes, expected {expected_size} for {count} records"
            )

        if count:
            records = np.frombuffer(data, dtype=RECORD_DTYPE, count=count, offset=header_size)
        else:
            records = np.zeros(0, dtype=RECORD_DTYPE)
        keys = records['key']
        scores = records['score']

        if count > 1 and not np.all(keys[1:] > keys[:-1]):
            raise BookLoadError("opening book records are not sorted by key")
        if count and int(np.abs(scores.astype(np.int16)).max()) > _SCORE_LIMIT:
            raise BookLoadError("opening book contains out-of-range scores")

        return cls(keys, scores, max_depth)

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'OpeningBook':
        """
        Load a book file from disk.

        Raises:
            BookLoadError: If the file cannot be read or is not a valid book
        """
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise BookLoadError(f"cannot read opening book {path}: {e}") from e

        book = cls.from_bytes(data)
        logger.info("Loaded opening book %s: %d positions, depth %d", path, len(book), book.max_depth)
        return book

    def to_bytes(self) -> bytes:
        """Serialize the book to its binary representation."""
        header = np.zeros(1, dtype=HEADER_DTYPE)
        header['magic'] = BOOK_MAGIC
        header['version'] = BOOK_VERSION
        header['width'] = WIDTH
        header['height'] = HEIGHT
        header['max_depth'] = self.max_depth
        header['count'] = len(self.keys)

        records = np.zeros(len(self.keys), dtype=RECORD_DTYPE)
        records['key'] = self.keys
        records['score'] = self.scores

        return header.tobytes() + records.tobytes()

    def save(self, path: Union[str, Path]):
        """Write the book to disk."""
        Path(path).write_bytes(self.to_bytes())

    def get(self, key: int) -> Optional[int]:
        """Score stored for a canonical key, or None."""
        target = np.uint64(key)
        index = int(np.searchsorted(self.keys, target))
        if index < len(self.keys) and self.keys[index] == target:
            return int(self.scores[index])
        return None

    def lookup(self, position: Position) -> Optional[int]:
        """
        Exact score of a position, if the book covers it.

        Returns None for positions deeper than `max_depth` without searching.
        """
        if position.moves > self.max_depth:
            return None
        return self.get(position.canonical_key())

    def __len__(self) -> int:
        return len(self.keys)

    def __contains__(self, position: Position) -> bool:
        return self.lookup(position) is not None

    def __repr__(self) -> str:
        return f"OpeningBook(positions={len(self)}, max_depth={self.max_depth})"


# Global singleton instance
_default_book: Optional[OpeningBook] = None
_default_book_lock = threading.Lock()


def get_default_book() -> OpeningBook:
    """
    Get or load the process-wide default opening book.

    The book shipped with the package (or SOLVER_CONFIG['book_path'] when set)
    is loaded on first use and shared afterwards. Loading happens once; the
    returned book is immutable.

    Raises:
        BookLoadError: If the resource is missing or invalid
    """
    global _default_book

    if _default_book is None:
        with _default_book_lock:
            if _default_book is None:
                _default_book = _load_default_book()

    return _default_book


def _load_default_book() -> OpeningBook:
    book_path = SOLVER_CONFIG['book_path']
    if book_path is not None:
        return OpeningBook.load(book_path)

    resource = resources.files('connect_four_solver') / 'books' / 'default-book.bin'
    try:
        data = resource.read_bytes()
    except OSError as e:
        raise BookLoadError(f"cannot read packaged opening book: {e}") from e

    book = OpeningBook.from_bytes(data)
    logger.info("Loaded packaged opening book: %d positions, depth %d", len(book), book.max_depth)
    return book
