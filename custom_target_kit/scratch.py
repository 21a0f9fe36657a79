"""
scratch
-------

프로비저닝 중 생성되는 임시 파일(cloudbuild.yaml, skaffold.yaml, clouddeploy.yaml,
샘플 레포 clone)을 담는 작업 디렉토리.

정상 종료, 예외, SIGINT/SIGTERM 어느 경우에도 디렉토리를 삭제한다.
"""

from __future__ import annotations

import shutil
import signal
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from .logging_utils import get_logger


logger = get_logger(__name__)

SIGTERM_EXIT_CODE = 128 + signal.SIGTERM


def _raise_system_exit(signum, frame) -> None:  # noqa: ANN001, ARG001
    raise SystemExit(SIGTERM_EXIT_CODE)


@contextmanager
def scratch_directory(prefix: str = "custom-target-") -> Iterator[Path]:
    path = Path(tempfile.mkdtemp(prefix=prefix))
    logger.debug("작업 디렉토리 생성: %s", path)

    # 시그널 핸들러는 메인 스레드에서만 설치할 수 있다.
    previous = None
    on_main_thread = threading.current_thread() is threading.main_thread()
    if on_main_thread:
        previous = signal.signal(signal.SIGTERM, _raise_system_exit)

    try:
        yield path
    finally:
        if on_main_thread:
            signal.signal(signal.SIGTERM, previous if previous is not None else signal.SIG_DFL)
        shutil.rmtree(path, ignore_errors=True)
        logger.debug("작업 디렉토리 삭제: %s", path)
