from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, List

from dotenv import load_dotenv


ENV_FILES_DEFAULT_ORDER = [".env", ".env.custom-target"]

DEFAULT_SAMPLES_REPO_URL = "https://github.com/GoogleCloudPlatform/cloud-deploy-samples"


def load_env_files(base_dir: str = ".",
                   files: Optional[List[str]] = None) -> None:
    """
    주어진 디렉토리에서 .env 계열 파일을 순서대로 로드한다.
    후순위 파일이 같은 키를 덮어쓴다.
    """
    order = files or ENV_FILES_DEFAULT_ORDER
    for name in order:
        path = os.path.join(base_dir, name)
        if os.path.exists(path):
            load_dotenv(path, override=True)


def _get_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.lower() in {"1", "true", "yes", "y"}


@dataclass
class ProvisionConfig:
    # 필수
    project_id: str
    region: str

    # Custom Target 정의
    source_subdir: str = "git-ops/git-deployer"
    image_name: str = "git"
    type_name: str = "git"
    custom_action_name: str = "git-deployer"
    gcs_directory: str = "git"
    skaffold_config_name: str = "gitConfig"
    use_default_renderer: bool = True

    # 리소스/소스 위치
    artifact_registry_repo: str = "cd-custom-targets"
    samples_repo_url: str = DEFAULT_SAMPLES_REPO_URL
    custom_targets_dir: str = "."

    @property
    def bucket_name(self) -> str:
        return f"{self.project_id}-{self.region}-custom-targets"

    @property
    def registry_host(self) -> str:
        return f"{self.region}-docker.pkg.dev"

    @property
    def repository_url(self) -> str:
        return f"{self.registry_host}/{self.project_id}/{self.artifact_registry_repo}"

    @property
    def image_url(self) -> str:
        return f"{self.repository_url}/{self.image_name}"

    @property
    def module_config_object(self) -> str:
        return f"{self.gcs_directory}/skaffold.yaml"

    @property
    def module_config_uri(self) -> str:
        return f"gs://{self.bucket_name}/{self.module_config_object}"

    @property
    def module_source_glob(self) -> str:
        return f"gs://{self.bucket_name}/{self.gcs_directory}/*"

    @classmethod
    def from_env(cls, base_dir: str = ".") -> "ProvisionConfig":
        # 필수값
        missing: List[str] = []
        def req(name: str) -> str:
            val = os.getenv(name)
            if not val:
                missing.append(name)
            return val or ""

        cfg = cls(
            project_id=req("PROJECT_ID"),
            region=req("REGION"),
            source_subdir=os.getenv("CT_SRCDIR", cls.source_subdir),
            image_name=os.getenv("CT_IMAGE_NAME", cls.image_name),
            type_name=os.getenv("CT_TYPE_NAME", cls.type_name),
            custom_action_name=os.getenv("CT_CUSTOM_ACTION_NAME", cls.custom_action_name),
            gcs_directory=os.getenv("CT_GCS_DIRECTORY", cls.gcs_directory),
            skaffold_config_name=os.getenv("CT_SKAFFOLD_CONFIG_NAME", cls.skaffold_config_name),
            use_default_renderer=_get_bool("CT_USE_DEFAULT_RENDERER", True),
            artifact_registry_repo=os.getenv("AR_REPO_NAME", cls.artifact_registry_repo),
            samples_repo_url=os.getenv("SAMPLES_REPO_URL", DEFAULT_SAMPLES_REPO_URL),
            custom_targets_dir=os.getenv("CUSTOM_TARGETS_DIR", base_dir),
        )

        if missing:
            raise ValueError(
                "필수 환경변수가 누락되었습니다: " + ", ".join(sorted(set(missing)))
            )

        return cfg
