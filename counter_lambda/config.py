"""
config.py - 카운터 Lambda 변형(variant) 설정

-- 왜 이 모듈이 필요한가?
원래 배포는 거의 같은 핸들러 다섯 개로 이루어져 있었습니다.
다섯 개의 차이는 "클라이언트를 언제 만드는가", "인위적인 CPU 작업을 넣는가",
"다른 AWS 서비스를 장식용으로 호출하는가" 세 가지뿐입니다.
이 모듈은 그 차이를 하나의 설정 구조체(VariantConfig)로 표현합니다.

질문: 같은 코드를 다섯 번 배포하면서 환경변수만 바꾸면 무엇이 좋아질까요?

사용법 (Lambda 환경변수):
    COUNTER_VARIANT=optimized-snapstart
    TABLE_NAME=CounterTable
"""

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

DEFAULT_TABLE_NAME = "CounterTable"
DEFAULT_VARIANT = "update-counter"

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


class ConfigurationError(ValueError):
    """환경변수 또는 변형 이름이 잘못된 경우"""


@dataclass(frozen=True)
class VariantConfig:
    """
    하나의 배포 변형을 설명합니다.

    Args:
        name: 엔드포인트 경로와 같은 변형 이름 (예: 'optimized')
        lambda_type: 레코드/응답/헤더에 기록되는 태그
        counter_key: DynamoDB에서 사용하는 고정 키
        reuse_client: True면 프로세스 단위로 클라이언트를 한 번만 생성
        inject_synthetic_work: 인위적인 CPU 작업 실행 여부
        decorative_external_calls: S3/SQS/CloudWatch 장식용 호출 여부
        snapstart: SnapStart 사용 여부 (기록용)
        performance_profile: 응답 헤더에 붙는 성능 프로파일 이름 (기록용)
    """

    name: str
    lambda_type: str
    counter_key: str
    reuse_client: bool = False
    inject_synthetic_work: bool = False
    decorative_external_calls: bool = False
    snapstart: bool = False
    performance_profile: Optional[str] = None
    table_name: str = DEFAULT_TABLE_NAME
    decorative_timeout: float = 1.0
    synthetic_iterations: int = 1000
    region_name: Optional[str] = None


VARIANTS = {
    "update-counter": VariantConfig(
        name="update-counter",
        lambda_type="BasicFunction",
        counter_key="BasicFunction",
    ),
    "optimized": VariantConfig(
        name="optimized",
        lambda_type="OptimizedFunction",
        counter_key="OptimizedFunction",
        reuse_client=True,
    ),
    "optimized-snapstart": VariantConfig(
        name="optimized-snapstart",
        lambda_type="OptimizedSnapStartFunction",
        counter_key="OptimizedSnapStartFunction",
        reuse_client=True,
        snapstart=True,
        performance_profile="Optimal-SnapStart",
    ),
    "non-performant": VariantConfig(
        name="non-performant",
        lambda_type="NonPerformantFunction",
        counter_key="NonPerformantCounter",
        inject_synthetic_work=True,
        decorative_external_calls=True,
        performance_profile="Intentionally-Slow",
    ),
    "non-performant-snapstart": VariantConfig(
        name="non-performant-snapstart",
        lambda_type="NonPerformantSnapStartFunction",
        counter_key="NonPerformantSnapStartCounter",
        inject_synthetic_work=True,
        decorative_external_calls=True,
        snapstart=True,
        performance_profile="Suboptimal-SnapStart",
    ),
}


def parse_bool(name: str, value: str) -> bool:
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} 값이 올바르지 않습니다: {value!r}")


def _parse_number(name: str, value: str, cast):
    try:
        number = cast(value)
    except ValueError:
        raise ConfigurationError(f"{name} 값이 숫자가 아닙니다: {value!r}") from None
    if number < 0:
        raise ConfigurationError(f"{name} 값은 음수일 수 없습니다: {value!r}")
    return number


def load_variant(
    name: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> VariantConfig:
    """
    환경변수로부터 변형 설정을 만듭니다.

    -- 왜: 핸들러 모듈을 import할 때 한 번만 호출됩니다.
    설정이 잘못되었다면 첫 요청이 아니라 초기화(INIT) 단계에서 실패합니다.

    Args:
        name: 변형 이름 (None이면 COUNTER_VARIANT 환경변수, 그것도 없으면 'update-counter')
        environ: 환경변수 매핑 (None이면 os.environ)

    Returns:
        오버라이드가 적용된 VariantConfig

    Raises:
        ConfigurationError: 알 수 없는 변형 이름 또는 잘못된 값
    """
    if environ is None:
        environ = os.environ

    variant_name = name or environ.get("COUNTER_VARIANT", DEFAULT_VARIANT)
    try:
        config = VARIANTS[variant_name]
    except KeyError:
        known = ", ".join(sorted(VARIANTS))
        raise ConfigurationError(
            f"알 수 없는 변형입니다: {variant_name!r} (사용 가능: {known})"
        ) from None

    overrides = {}
    if environ.get("TABLE_NAME"):
        overrides["table_name"] = environ["TABLE_NAME"]
    if environ.get("COUNTER_KEY"):
        overrides["counter_key"] = environ["COUNTER_KEY"]
    if environ.get("REUSE_CLIENT"):
        overrides["reuse_client"] = parse_bool("REUSE_CLIENT", environ["REUSE_CLIENT"])
    if environ.get("SYNTHETIC_WORK"):
        overrides["inject_synthetic_work"] = parse_bool(
            "SYNTHETIC_WORK", environ["SYNTHETIC_WORK"]
        )
    if environ.get("DECORATIVE_CALLS"):
        overrides["decorative_external_calls"] = parse_bool(
            "DECORATIVE_CALLS", environ["DECORATIVE_CALLS"]
        )
    if environ.get("DECORATIVE_TIMEOUT"):
        overrides["decorative_timeout"] = _parse_number(
            "DECORATIVE_TIMEOUT", environ["DECORATIVE_TIMEOUT"], float
        )
    if environ.get("SYNTHETIC_ITERATIONS"):
        overrides["synthetic_iterations"] = _parse_number(
            "SYNTHETIC_ITERATIONS", environ["SYNTHETIC_ITERATIONS"], int
        )
    if environ.get("AWS_REGION"):
        overrides["region_name"] = environ["AWS_REGION"]

    return replace(config, **overrides)
