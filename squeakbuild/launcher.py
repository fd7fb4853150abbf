"""Child process launching for VM builds."""

from __future__ import annotations

import signal
import subprocess
import threading
from pathlib import Path
from typing import List, Optional

from squeakbuild.constants import TERMINATE_GRACE
from squeakbuild.exceptions import BuildTimeout, LaunchError
from squeakbuild.utils import format_command, log


def _stop(proc: subprocess.Popen) -> None:
    """Terminate *proc*, escalating to SIGKILL when it ignores SIGTERM."""
    if proc.poll() is not None:
        return
    try:
        proc.terminate()
        proc.wait(timeout=TERMINATE_GRACE)
    except subprocess.TimeoutExpired:
        try:
            proc.kill()
        except OSError:
            pass
        proc.wait()
    except OSError:
        pass


class ProcessLauncher:
    """Run a command, copying its merged stdout/stderr into a text sink."""

    def run(self, cmd: List[str], cwd: Path, sink, timeout: Optional[float] = None) -> int:
        log("DEBUG", f"Running: {format_command(cmd)}")
        try:
            proc = subprocess.Popen(
                cmd,
                cwd=str(cwd),
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as exc:
            raise LaunchError(f"Cannot start {cmd[0]}: {exc}")

        timed_out = threading.Event()

        def _on_timeout() -> None:
            if proc.poll() is None:
                timed_out.set()
                _stop(proc)

        watchdog: Optional[threading.Timer] = None
        if timeout is not None:
            watchdog = threading.Timer(timeout, _on_timeout)
            watchdog.daemon = True
            watchdog.start()

        prev_sigterm = None
        in_main_thread = threading.current_thread() is threading.main_thread()
        if in_main_thread:

            def _terminate_child(signum, frame):
                _stop(proc)

            prev_sigterm = signal.signal(signal.SIGTERM, _terminate_child)
        try:
            assert proc.stdout is not None
            for line in proc.stdout:
                sink.write(line)
            proc.stdout.close()
            returncode = proc.wait()
        except KeyboardInterrupt:
            _stop(proc)
            raise
        finally:
            if watchdog is not None:
                watchdog.cancel()
            if in_main_thread:
                signal.signal(signal.SIGTERM, prev_sigterm)

        flush = getattr(sink, "flush", None)
        if flush is not None:
            flush()
        if timed_out.is_set():
            raise BuildTimeout(f"VM did not finish within {timeout:g}s and was killed")
        return returncode
