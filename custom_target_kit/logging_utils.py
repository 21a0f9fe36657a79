import logging
import sys

import click


def setup_logging(verbosity: int = 0) -> None:
    level = logging.INFO
    if verbosity >= 1:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stdout,
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def announce(message: str, logger: logging.Logger | None = None) -> None:
    """
    단계 시작을 눈에 띄게 알리는 배너(`>> ...`, 굵은 초록색)를 stderr 에 출력한다.
    """
    click.secho(f">> {message}", fg="green", bold=True, err=True)
    if logger is not None:
        logger.info(message)
