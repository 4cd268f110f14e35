"""AWS Lambda handler for the Webhook Relay API.

Wraps the FastAPI application with the Mangum adapter so the ingestion
and retry endpoints can run on AWS Lambda behind API Gateway. Workers
are long-running processes and are not served from here.
"""

from mangum import Mangum

from webhook_relay.main import app

# api_gateway_base_path strips the stage name from paths
handler = Mangum(app, lifespan="off", api_gateway_base_path="/v1")


def lambda_handler(event: dict, context: object) -> dict:
    """
    AWS Lambda function handler.

    Args:
        event: API Gateway event containing request details
        context: Lambda context object with runtime information

    Returns:
        API Gateway response dict with statusCode, headers, and body
    """
    return handler(event, context)
