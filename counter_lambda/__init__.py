"""
counter_lambda - 콜드 스타트 비교용 카운터 Lambda

handler.py가 Lambda 진입점입니다 (counter_lambda.handler.lambda_handler).
"""

__version__ = "1.0.0"
