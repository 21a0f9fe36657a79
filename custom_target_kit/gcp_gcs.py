"""
gcp_gcs
-------

Custom Target 설정(skaffold 모듈)을 담을 GCS 버킷 구성과 업로드를 담당하는 모듈.
"""

from __future__ import annotations

from pathlib import Path

from google.cloud import storage

from .config import ProvisionConfig
from .logging_utils import announce, get_logger


logger = get_logger(__name__)


def _client(cfg: ProvisionConfig) -> storage.Client:
    return storage.Client(project=cfg.project_id)


def bucket_exists(cfg: ProvisionConfig) -> bool:
    return _client(cfg).bucket(cfg.bucket_name).exists()


def ensure_bucket(cfg: ProvisionConfig) -> bool:
    """
    GCS 버킷이 존재하는지 확인하고, 없으면 생성한다.

    Returns:
        새로 생성했으면 True
    """
    bucket_name = cfg.bucket_name
    logger.info("GCS 버킷 확인: %s", bucket_name)

    client = _client(cfg)
    bucket = client.bucket(bucket_name)

    if bucket.exists():
        logger.info("기존 GCS 버킷을 사용합니다: %s", bucket_name)
        return False

    announce("Creating a storage bucket to hold the custom target configuration", logger)
    client.create_bucket(bucket, location=cfg.region)
    logger.info("GCS 버킷을 생성했습니다: %s (location=%s)", bucket_name, cfg.region)
    return True


def upload_file(cfg: ProvisionConfig, local_path: Path, object_name: str) -> str:
    """
    로컬 파일을 버킷의 object_name 으로 업로드하고 gs:// URI 를 반환한다.
    """
    blob = _client(cfg).bucket(cfg.bucket_name).blob(object_name)
    blob.upload_from_filename(str(local_path), content_type="application/x-yaml")
    uri = f"gs://{cfg.bucket_name}/{object_name}"
    logger.info("업로드 완료: %s -> %s", local_path, uri)
    return uri


def check_bucket(cfg: ProvisionConfig) -> str:
    """
    GCS 버킷 존재 여부를 확인만 하고, 생성하지 않는다.
    """
    if bucket_exists(cfg):
        return f"GCS: 버킷 존재함 ({cfg.bucket_name})"
    return f"GCS: 버킷 없음 (생성이 필요함) ({cfg.bucket_name})"
