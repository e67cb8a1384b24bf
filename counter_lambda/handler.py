"""
Lambda 핸들러 - 카운터 업데이트

-- 왜 이 핸들러가 필요한가?
같은 일을 하는 함수를 초기화 방식만 바꿔 여러 번 배포하고,
콜드 스타트 지연시간을 비교하기 위한 핸들러입니다.
하는 일은 단 하나입니다: DynamoDB의 카운터를 읽고, 1 더해서, 다시 씁니다.

배포 변형은 COUNTER_VARIANT 환경변수로 고릅니다 (config.py 참고).
  - update-counter: 요청마다 클라이언트 생성
  - optimized / optimized-snapstart: 클라이언트를 INIT 단계에서 한 번만 생성
  - non-performant / non-performant-snapstart: CPU 작업 + 장식용 AWS 호출 추가

질문: 아래 lambda_handler 위의 _handler는 언제 만들어질까요?
      매 요청마다? 아니면 실행 환경이 만들어질 때 한 번?

SAA 포인트: SnapStart는 INIT 단계가 끝난 메모리 상태를 스냅샷으로 저장합니다.
           INIT에서 만든 객체만 스냅샷의 이점을 얻습니다.
"""

import json
import time
from typing import Callable, Optional

from botocore.exceptions import ClientError

from counter_lambda.aws_helper import ALL_SERVICES, DYNAMODB, ClientProvider
from counter_lambda.config import VariantConfig, load_variant
from counter_lambda.store import CounterStore, utc_now
from counter_lambda.synthetic import (
    SyntheticWork,
    call_decorative_services,
    make_cpu_burner,
    no_synthetic_work,
    precomputed_value,
)
from counter_lambda.telemetry import (
    MetricUnit,
    initialization_type,
    is_cold_start,
    logger,
    metrics,
    tracer,
)

INTERNAL_ERROR_BODY = {"error": "Internal server error"}

LOG_KEYS = [
    "functionName",
    "functionVersion",
    "requestId",
    "lambdaType",
    "snapStartEnabled",
    "performanceProfile",
]


def response(status_code, body, headers=None):
    """
    API Gateway 프록시 통합 형식의 응답을 생성합니다.

    statusCode, headers, body 세 필드가 정확히 이 형식이어야 합니다.
    """
    all_headers = {"Content-Type": "application/json"}
    if headers:
        all_headers.update(headers)
    return {
        "statusCode": status_code,
        "headers": all_headers,
        "body": json.dumps(body, default=str, ensure_ascii=False),
    }


def error_response():
    # 내부 오류 내용은 호출자에게 노출하지 않습니다. 로그에만 남깁니다.
    return response(500, INTERNAL_ERROR_BODY)


class CounterHandler:
    """
    카운터 업데이트 요청 하나를 처리합니다.

    Args:
        config: 변형 설정
        clients: ClientProvider (재사용 여부는 provider가 결정)
        store_factory: Table → 저장소 객체
        synthetic_work: 인위적인 CPU 작업 (None이면 아무것도 하지 않음)
        static_result: 최적화 변형이 INIT에서 미리 계산한 값 (응답 장식용)
        clock: 타임스탬프 함수
    """

    def __init__(
        self,
        config: VariantConfig,
        clients: ClientProvider,
        store_factory: Callable = CounterStore,
        synthetic_work: Optional[SyntheticWork] = None,
        static_result: Optional[int] = None,
        clock: Callable[[], str] = utc_now,
    ):
        self.config = config
        self.clients = clients
        self.store_factory = store_factory
        self.synthetic_work = synthetic_work or no_synthetic_work
        self.static_result = static_result
        self.clock = clock

    def _headers(self) -> dict:
        headers = {"X-Lambda-Type": self.config.lambda_type}
        if self.config.snapstart:
            headers["X-SnapStart-Enabled"] = "true"
        if self.config.performance_profile:
            headers["X-Performance-Profile"] = self.config.performance_profile
        return headers

    def _append_log_keys(self, context) -> None:
        # 요청이 끝나면 handle()에서 LOG_KEYS를 지웁니다.
        logger.append_keys(
            functionName=getattr(context, "function_name", None),
            functionVersion=getattr(context, "function_version", None),
            requestId=getattr(context, "aws_request_id", None),
            lambdaType=self.config.lambda_type,
            snapStartEnabled=self.config.snapstart,
            performanceProfile=self.config.performance_profile,
        )

    @tracer.capture_method
    def update_counter(self) -> int:
        # reuse=False 이면 여기서 이번 요청만의 클라이언트가 만들어집니다.
        store = self.store_factory(self.clients.table(self.config.table_name))
        tracer.put_annotation(key="CounterKey", value=self.config.counter_key)

        new_value = store.increment(
            self.config.counter_key,
            variant_tag=self.config.lambda_type,
            snapstart=self.config.snapstart,
            now=self.clock(),
        )
        logger.info(
            "카운터 업데이트 완료",
            extra={
                "counterKey": self.config.counter_key,
                "previousValue": new_value - 1,
                "newValue": new_value,
            },
        )
        return new_value

    def handle(self, event, context) -> dict:
        """
        요청 하나를 처리하고 API Gateway 응답을 반환합니다.

        요청 바디는 읽지 않습니다. 성공하면 200과 새 카운터 값,
        어떤 예외든 발생하면 500과 고정된 에러 바디를 반환합니다.
        """
        self._append_log_keys(context)
        try:
            return self._handle(context)
        finally:
            logger.remove_keys(LOG_KEYS)

    def _record_variant_metrics(self, dynamic_result, context) -> None:
        if dynamic_result is not None:
            metrics.add_metric(name="DynamicResult", unit=MetricUnit.Count, value=dynamic_result)
        if self.static_result is not None:
            metrics.add_metric(name="StaticResult", unit=MetricUnit.Count, value=self.static_result)
        if hasattr(context, "get_remaining_time_in_millis"):
            metrics.add_metric(
                name="RemainingTime",
                unit=MetricUnit.Milliseconds,
                value=context.get_remaining_time_in_millis(),
            )

        metrics.add_metadata(key="coldStart", value=str(is_cold_start()))
        metrics.add_metadata(key="initializationType", value=initialization_type())
        metrics.add_metadata(key="clientReuse", value=str(self.config.reuse_client))
        metrics.add_metadata(key="staticClientsUsed", value=str(self.config.reuse_client))
        metrics.add_metadata(
            key="multipleClientsUsed", value=str(len(self.clients.services) > 1)
        )
        metrics.add_metadata(
            key="dynamicCodeGeneration", value=str(self.config.inject_synthetic_work)
        )
        if self.config.reuse_client:
            for service_name in self.clients.services:
                metrics.add_metadata(key=f"{service_name}Initialized", value="true")

    def _handle(self, context) -> dict:
        logger.info("카운터 업데이트 요청 처리 시작")

        try:
            request_start = time.perf_counter()

            dynamic_result = None
            if self.config.inject_synthetic_work:
                dynamic_result = self.synthetic_work()

            if self.config.decorative_external_calls:
                call_decorative_services(self.clients, timeout=self.config.decorative_timeout)

            counter_value = self.update_counter()

            processing_time_ms = round((time.perf_counter() - request_start) * 1000, 2)

            metrics.add_metric(name="CounterValue", unit=MetricUnit.Count, value=counter_value)
            metrics.add_metric(
                name="ProcessingTime", unit=MetricUnit.Milliseconds, value=processing_time_ms
            )
            self._record_variant_metrics(dynamic_result, context)

            body = {
                "counter": counter_value,
                "lambdaType": self.config.lambda_type,
                "processingTime": processing_time_ms,
                "timestamp": self.clock(),
            }
            if dynamic_result is not None:
                body["dynamicResult"] = dynamic_result
            if self.static_result is not None:
                body["staticResult"] = self.static_result
            if self.config.snapstart:
                body["snapStartEnabled"] = True

            logger.info("요청 처리 완료", extra={"counter": counter_value})
            return response(200, body, self._headers())

        except ClientError as e:
            logger.exception(f"DynamoDB 오류: {e.response['Error']['Code']}")
            metrics.add_metric(name="ErrorCount", unit=MetricUnit.Count, value=1)
            return error_response()
        except Exception as e:
            logger.exception(f"요청 처리 중 오류: {type(e).__name__}")
            metrics.add_metric(name="ErrorCount", unit=MetricUnit.Count, value=1)
            return error_response()


def build_handler(config: VariantConfig) -> CounterHandler:
    """
    변형 설정에 맞게 CounterHandler를 조립합니다.

    reuse_client=True 이면 ClientProvider가 여기서 클라이언트를 미리 만듭니다.
    """
    # 재사용 변형은 다섯 개 클라이언트를 모두 INIT 단계에서 만들어 스냅샷에 포함시킵니다.
    needs_all = config.reuse_client or config.decorative_external_calls
    services = ALL_SERVICES if needs_all else (DYNAMODB,)
    clients = ClientProvider(
        reuse=config.reuse_client,
        services=services,
        region_name=config.region_name,
    )

    synthetic_work = no_synthetic_work
    if config.inject_synthetic_work:
        synthetic_work = make_cpu_burner(config.synthetic_iterations)

    static_result = precomputed_value() if config.reuse_client else None

    logger.info(
        f"{config.lambda_type} 초기화 완료",
        extra={"clientReuse": config.reuse_client, "snapStartEnabled": config.snapstart},
    )
    return CounterHandler(
        config,
        clients,
        synthetic_work=synthetic_work,
        static_result=static_result,
    )


# 이 코드는 실행 환경이 생성될 때(콜드 스타트, 또는 SnapStart 스냅샷 생성 시) 한 번만 실행됩니다.
VARIANT = load_variant()
metrics.set_default_dimensions(lambdaType=VARIANT.lambda_type)
_handler = build_handler(VARIANT)


@logger.inject_lambda_context(log_event=True, clear_state=True)
@metrics.log_metrics(capture_cold_start_metric=True)
@tracer.capture_lambda_handler
def lambda_handler(event, context):
    """
    Lambda 진입점

    event: API Gateway가 전달한 요청 (바디는 사용하지 않음)
    context: 요청 ID, 남은 실행 시간 등 실행 환경 정보
    """
    return _handler.handle(event, context)
