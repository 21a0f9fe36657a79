import sys

import click
from google.api_core.exceptions import GoogleAPIError

from .config import load_env_files, ProvisionConfig
from .logging_utils import setup_logging, get_logger
from .orchestrator import check_all, format_result, plan_all, provision
from .subprocess_utils import CommandError


logger = get_logger(__name__)


@click.group()
@click.option(
    "-C",
    "--chdir",
    "chdir",
    type=click.Path(file_okay=False, dir_okay=True, exists=True),
    default=".",
    help="작업 디렉토리 (기본: 현재 디렉토리). .env 파일과 로컬 custom-targets 소스를 여기서 찾습니다.",
)
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="로그 레벨을 DEBUG로 올립니다.",
)
@click.pass_context
def main(ctx: click.Context, chdir: str, verbose: int) -> None:
    """Cloud Deploy Custom Target Type(git) 등록용 CLI"""
    setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["chdir"] = chdir
    ctx.obj["verbose"] = verbose


def _load_config_from_ctx(ctx: click.Context) -> ProvisionConfig:
    base_dir: str = ctx.obj["chdir"]
    load_env_files(base_dir)
    cfg = ProvisionConfig.from_env(base_dir=base_dir)
    logger.debug("Config loaded: %s", cfg)
    return cfg


def _load_or_exit(ctx: click.Context) -> ProvisionConfig:
    try:
        return _load_config_from_ctx(ctx)
    except ValueError as e:
        click.echo(f"[ERROR] 설정 로드 실패: {e}", err=True)
        click.echo("PROJECT_ID 와 REGION 환경변수를 설정해야 합니다.", err=True)
        sys.exit(1)


@main.command()
@click.pass_context
def plan(ctx: click.Context) -> None:
    """실행될 단계와 생성될 cloudbuild.yaml / clouddeploy.yaml 을 출력 (GCP 호출 없음)"""
    cfg = _load_or_exit(ctx)
    click.echo(plan_all(cfg))


@main.command()
@click.pass_context
def check(ctx: click.Context) -> None:
    """
    Artifact Registry 리포지토리와 GCS 버킷 상태를 점검한다.
    (실제 리소스 생성/변경은 하지 않는다)
    """
    cfg = _load_or_exit(ctx)

    report, has_issues = check_all(cfg)
    click.echo(report)

    # 새로 생성될 리소스가 있으면 exit 1 로 종료하여 CI 등에서 감지 가능하게 한다.
    if has_issues:
        sys.exit(1)


@main.command()
@click.pass_context
def apply(ctx: click.Context) -> None:
    """이미지 빌드부터 CustomTargetType 등록까지 전체 단계를 실행"""
    cfg = _load_or_exit(ctx)

    try:
        result = provision(cfg)
    except CommandError as e:
        logger.error("프로비저닝 실패: %s", e)
        click.echo(f"[ERROR] 프로비저닝 실패: {e}", err=True)
        sys.exit(e.returncode or 1)
    except (GoogleAPIError, ValueError) as e:
        logger.exception("프로비저닝 중 오류 발생")
        click.echo(f"[ERROR] 프로비저닝 실패: {e}", err=True)
        sys.exit(1)

    click.echo(format_result(cfg, result))
