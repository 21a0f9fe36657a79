from __future__ import annotations

import queue
import subprocess
import sys
import threading
import time
from dataclasses import dataclass
from textwrap import shorten
from typing import Mapping, Sequence

from .logging_utils import get_logger


logger = get_logger(__name__)

EXIT_COMMAND_NOT_FOUND = 127
EXIT_TIMEOUT = 124
OUTPUT_TAIL_CHARS = 2000


@dataclass(frozen=True)
class RunResult:
    returncode: int
    stdout: str
    stderr: str


class CommandError(RuntimeError):
    """
    외부 명령(gcloud/git 등) 실패.

    returncode 는 CLI 종료 코드로 그대로 전달된다.
    """

    def __init__(self, message: str, *, cmd: Sequence[str], returncode: int, output: str = "") -> None:
        super().__init__(message)
        self.cmd = list(cmd)
        self.returncode = returncode
        self.output = output


def _not_found(cmd: Sequence[str]) -> CommandError:
    return CommandError(
        f"필요한 명령을 찾을 수 없습니다: {cmd[0]} (gcloud/git 이 설치되어 있는지 확인하세요)",
        cmd=cmd,
        returncode=EXIT_COMMAND_NOT_FOUND,
    )


def _timed_out(cmd: Sequence[str], timeout: float | None) -> CommandError:
    return CommandError(
        f"명령 실행이 {timeout}초 안에 끝나지 않았습니다: {' '.join(cmd)}",
        cmd=cmd,
        returncode=EXIT_TIMEOUT,
    )


def _failed(
    cmd: Sequence[str],
    returncode: int,
    output: str,
    label: str,
    *,
    tail: bool = False,
) -> CommandError:
    if tail:
        # 스트리밍 로그(빌드 등)는 마지막 부분에 실제 오류가 있으므로 끝부분을 남긴다.
        summary = output[-OUTPUT_TAIL_CHARS:]
        if len(output) > OUTPUT_TAIL_CHARS:
            summary = "…" + summary
    else:
        summary = shorten(output, width=2000)
    detail = f"\n{label}:\n" + summary if output else ""
    return CommandError(
        f"명령 실행 실패: {' '.join(cmd)} (exit={returncode}){detail}",
        cmd=cmd,
        returncode=returncode,
        output=output,
    )


def _run_streaming(
    cmd: Sequence[str],
    *,
    cwd: str | None,
    env: Mapping[str, str] | None,
    timeout: float | None,
) -> RunResult:
    # gcloud 는 stderr 로도 진행 로그를 내보내므로 STDOUT 으로 합친다.
    try:
        proc = subprocess.Popen(  # noqa: S603
            list(cmd),
            cwd=cwd,
            env=dict(env) if env is not None else None,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            bufsize=1,
        )
    except FileNotFoundError as e:
        raise _not_found(cmd) from e

    out_lines: list[str] = []
    deadline = None if timeout is None else time.monotonic() + float(timeout)

    # 출력이 없는 동안에도 deadline 을 확인할 수 있도록 별도 스레드에서 읽는다.
    q: queue.Queue[str | None] = queue.Queue()

    def _reader() -> None:
        try:
            assert proc.stdout is not None
            for line in proc.stdout:
                q.put(line)
        finally:
            q.put(None)

    reader_thread = threading.Thread(target=_reader, daemon=True)
    reader_thread.start()

    try:
        while True:
            if deadline is not None and time.monotonic() >= deadline:
                raise _timed_out(cmd, timeout)

            try:
                item = q.get(timeout=0.1)
            except queue.Empty:
                if proc.poll() is not None:
                    # 자식이 끝났는데 파이프가 열려 있으면(손자 프로세스 등) 잠깐만 더 기다린다.
                    try:
                        item = q.get(timeout=0.2)
                    except queue.Empty:
                        break
                else:
                    continue

            if item is None:
                break
            out_lines.append(item)
            sys.stdout.write(item)
            sys.stdout.flush()

        wait_timeout = None
        if deadline is not None:
            wait_timeout = max(deadline - time.monotonic(), 0.0)
        returncode = proc.wait(timeout=wait_timeout)
    except subprocess.TimeoutExpired as e:
        raise _timed_out(cmd, timeout) from e
    finally:
        if proc.poll() is None:
            # timeout/KeyboardInterrupt 등으로 빠져나가는 경우 자식 프로세스를 남기지 않는다.
            proc.kill()
            proc.wait()
        reader_thread.join(timeout=1.0)
        if proc.stdout is not None:
            proc.stdout.close()

    combined = "".join(out_lines)
    if returncode != 0:
        raise _failed(cmd, returncode, combined.strip(), "stdout/stderr", tail=True)

    return RunResult(returncode=returncode, stdout=combined, stderr="")


def run_command(
    cmd: Sequence[str],
    *,
    cwd: str | None = None,
    env: Mapping[str, str] | None = None,
    timeout: float | None = 900.0,
    stream_output: bool = False,
) -> RunResult:
    """
    subprocess 실행 공통 유틸.

    - stream_output=False: stdout/stderr 캡처, 실패 시 요약을 포함한 CommandError
    - stream_output=True : stdout/stderr 를 실시간으로 터미널에 흘린다(Cloud Build 로그 등)
    - timeout=None       : 완료될 때까지 기다린다
    """
    logger.info("명령 실행: %s", " ".join(cmd))

    if stream_output:
        return _run_streaming(cmd, cwd=cwd, env=env, timeout=timeout)

    try:
        result = subprocess.run(
            list(cmd),
            check=True,
            capture_output=True,
            text=True,
            timeout=timeout,
            cwd=cwd,
            env=dict(env) if env is not None else None,
        )
    except FileNotFoundError as e:
        raise _not_found(cmd) from e
    except subprocess.TimeoutExpired as e:
        raise _timed_out(cmd, timeout) from e
    except subprocess.CalledProcessError as e:
        stdout = (e.stdout or "").strip()
        stderr = (e.stderr or "").strip()
        if stderr:
            raise _failed(cmd, e.returncode, stderr, "stderr") from e
        raise _failed(cmd, e.returncode, stdout, "stdout") from e

    if result.stdout:
        logger.debug("명령 stdout: %s", shorten(result.stdout.strip(), width=2000))
    if result.stderr:
        logger.debug("명령 stderr: %s", shorten(result.stderr.strip(), width=2000))
    return RunResult(returncode=result.returncode, stdout=result.stdout or "", stderr=result.stderr or "")
