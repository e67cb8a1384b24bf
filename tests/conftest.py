"""
공용 테스트 픽스처

moto로 DynamoDB를 프로세스 안에서 흉내 내므로 실제 AWS 계정이 필요 없습니다.
"""

import os

# 핸들러 모듈을 import하기 전에 설정되어야 합니다.
os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
os.environ["AWS_SECURITY_TOKEN"] = "testing"
os.environ["AWS_SESSION_TOKEN"] = "testing"
os.environ["AWS_DEFAULT_REGION"] = "us-east-1"
os.environ["COUNTER_VARIANT"] = "update-counter"
os.environ["POWERTOOLS_TRACE_DISABLED"] = "1"
os.environ["POWERTOOLS_METRICS_NAMESPACE"] = "CounterFunctionsTest"

import logging
import threading
import time
from dataclasses import dataclass

import boto3
import pytest
from moto import mock_aws

from counter_lambda.telemetry import SERVICE_NAME, metrics

TABLE_NAME = "CounterTable"


@dataclass
class LambdaContext:
    function_name: str = "counter-test"
    function_version: str = "$LATEST"
    memory_limit_in_mb: int = 128
    invoked_function_arn: str = "arn:aws:lambda:us-east-1:123456789012:function:counter-test"
    aws_request_id: str = "52fdfc07-2182-454f-963f-5f0f9a621d72"

    def get_remaining_time_in_millis(self) -> int:
        return 30000


class InMemoryTable:
    """
    get_item / put_item만 흉내 내는 테이블

    read_delay만큼 읽기와 쓰기 사이에 틈을 만들어 동시 요청이 서로 끼어들게 합니다.
    """

    def __init__(self, read_delay: float = 0.0):
        self.items = {}
        self.read_delay = read_delay
        self.get_calls = 0
        self.put_calls = 0
        self._lock = threading.Lock()

    def get_item(self, Key):
        with self._lock:
            self.get_calls += 1
            item = self.items.get(Key["Counter"])
            item = dict(item) if item else None
        if self.read_delay:
            time.sleep(self.read_delay)
        return {"Item": item} if item else {}

    def put_item(self, Item):
        with self._lock:
            self.put_calls += 1
            self.items[Item["Counter"]] = dict(Item)
        return {}


@pytest.fixture
def lambda_context():
    return LambdaContext()


@pytest.fixture
def dynamodb_table():
    with mock_aws():
        dynamodb = boto3.resource("dynamodb", region_name="us-east-1")
        table = dynamodb.create_table(
            TableName=TABLE_NAME,
            KeySchema=[{"AttributeName": "Counter", "KeyType": "HASH"}],
            AttributeDefinitions=[{"AttributeName": "Counter", "AttributeType": "S"}],
            BillingMode="PAY_PER_REQUEST",
        )
        yield table


@pytest.fixture
def service_log(caplog):
    """Powertools Logger는 루트로 전파하지 않으므로 서비스 로거에 직접 붙입니다."""
    service_logger = logging.getLogger(SERVICE_NAME)
    service_logger.addHandler(caplog.handler)
    yield caplog
    service_logger.removeHandler(caplog.handler)


@pytest.fixture(autouse=True)
def reset_metrics():
    yield
    metrics.clear_metrics()
