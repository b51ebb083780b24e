"""
Long-lived ``exiftool -stay_open`` process for pulling embedded previews.

A grid of RAW files asks for several binary tags per file; starting Perl for
each request would dominate the cost, so every worker thread keeps one
process open and feeds it argument blocks over stdin.  Each block ends with
a numbered ``-executeN`` so the matching ``{readyN}`` marker can be told
apart from image bytes in the output.
"""
import functools
import logging
import select
import subprocess
import threading
import time
from typing import List, Optional

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
READ_CHUNK = 64 * 1024

_live_processes: List["ExifToolProcess"] = []
_live_lock = threading.Lock()


@functools.lru_cache(maxsize=1)
def is_exiftool_available() -> bool:
    """True when an ``exiftool`` binary answers ``-ver``. Checked once per process."""
    try:
        result = subprocess.run(["exiftool", "-ver"], capture_output=True, check=True, timeout=5)
    except (subprocess.CalledProcessError, FileNotFoundError, subprocess.TimeoutExpired):
        logger.warning("exiftool not found on PATH; metadata previews disabled")
        return False
    logger.debug("Using exiftool %s", result.stdout.decode(errors="replace").strip())
    return True


class ExifToolProcess:
    """One persistent exiftool. Not thread-safe: use one instance per thread."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.timeout = timeout
        self._request_id = 0
        self._process = self._spawn()
        with _live_lock:
            _live_processes.append(self)

    @staticmethod
    def _spawn() -> subprocess.Popen:
        return subprocess.Popen(
            ["exiftool", "-stay_open", "True", "-@", "-"],
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
        )

    def extract_binary(self, tag: str, path: str) -> Optional[bytes]:
        """Raw bytes of a binary *tag* such as ``PreviewImage``; None when the file has none."""
        data = self.execute([f"-{tag}", "-b", path])
        return data or None

    def execute(self, args: List[str]) -> bytes:
        """Run one request and return everything exiftool printed for it.

        A dead or wedged process is replaced once and the request retried;
        a second failure is raised to the caller.
        """
        try:
            return self._request(args)
        except (OSError, RuntimeError, TimeoutError) as e:
            logger.warning("exiftool request failed (%s); starting a new process", e)
            self._respawn()
            return self._request(args)

    def _request(self, args: List[str]) -> bytes:
        self._request_id += 1
        request_id = self._request_id
        block = "\n".join(args) + f"\n-execute{request_id}\n"
        self._process.stdin.write(block.encode())  # type: ignore[union-attr]
        self._process.stdin.flush()                # type: ignore[union-attr]
        return self._read_until(f"{{ready{request_id}}}\n".encode())

    def _read_until(self, marker: bytes) -> bytes:
        stdout = self._process.stdout
        buffer = bytearray()
        deadline = time.monotonic() + self.timeout
        while not buffer.endswith(marker):
            remaining = deadline - time.monotonic()
            ready = select.select([stdout], [], [], remaining)[0] if remaining > 0 else []
            if not ready:
                raise TimeoutError(f"no answer from exiftool within {self.timeout}s")
            chunk = stdout.read1(READ_CHUNK)  # type: ignore[union-attr]
            if not chunk:
                raise RuntimeError("exiftool exited while a request was pending")
            buffer += chunk
        return bytes(buffer[:-len(marker)])

    def _respawn(self) -> None:
        try:
            self._process.kill()
            self._process.wait(timeout=2)
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.debug("Could not reap old exiftool process: %s", e)
        self._process = self._spawn()
        self._request_id = 0

    def terminate(self) -> None:
        """Ask exiftool to leave stay_open mode; kill it if it does not exit."""
        try:
            self._process.stdin.write(b"-stay_open\nFalse\n")  # type: ignore[union-attr]
            self._process.stdin.flush()                         # type: ignore[union-attr]
            self._process.wait(timeout=5)
        except (OSError, ValueError, subprocess.TimeoutExpired) as e:
            logger.debug("exiftool did not exit cleanly: %s", e)
        if self._process.poll() is None:
            self._process.kill()


def shutdown_all() -> None:
    """Terminate every exiftool started by this application."""
    with _live_lock:
        processes = list(_live_processes)
        _live_processes.clear()
    for proc in processes:
        proc.terminate()
    logger.info("Terminated %d exiftool process(es)", len(processes))
