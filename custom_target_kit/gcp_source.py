"""
gcp_source
----------

Custom Target 이미지 빌드에 사용할 소스(cloud-deploy-samples 의 custom-targets)
위치를 결정하고 커밋 해시를 읽는 모듈.
"""

from __future__ import annotations

from pathlib import Path

from .config import ProvisionConfig
from .logging_utils import announce, get_logger
from .subprocess_utils import run_command


logger = get_logger(__name__)


def local_source_dir(cfg: ProvisionConfig) -> Path:
    return Path(cfg.custom_targets_dir) / cfg.source_subdir


def clone_samples(cfg: ProvisionConfig, dest: Path) -> Path:
    """
    샘플 레포를 dest 로 clone 하고 custom-targets 디렉토리 경로를 반환한다.
    """
    announce(f"Cloning cloud-deploy-samples repo into {dest}", logger)
    run_command(["git", "clone", "--quiet", cfg.samples_repo_url, str(dest)])
    return dest / "custom-targets"


def resolve_source(cfg: ProvisionConfig, scratch_dir: Path) -> Path:
    """
    로컬 checkout 에 소스 디렉토리가 있으면 그대로 쓰고,
    없으면 작업 디렉토리에 샘플 레포를 clone 한다.

    Returns:
        custom-targets 루트 디렉토리
    """
    if local_source_dir(cfg).is_dir():
        root = Path(cfg.custom_targets_dir)
        logger.info("로컬 소스를 사용합니다: %s", root)
        return root
    return clone_samples(cfg, scratch_dir / "cloud-deploy-samples")


def read_commit_sha(source_root: Path) -> str:
    result = run_command(["git", "rev-parse", "--verify", "HEAD"], cwd=str(source_root))
    sha = result.stdout.strip()
    logger.info("빌드 대상 커밋: %s", sha)
    return sha
