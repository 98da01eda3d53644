from __future__ import annotations

from pathlib import Path

from aws_cdk import (
    CfnOutput,
    Duration,
    RemovalPolicy,
    Stack,
    aws_apigatewayv2 as apigwv2,
    aws_apigatewayv2_integrations as apigwv2_integrations,
    aws_dynamodb as dynamodb,
    aws_lambda as lambda_,
    aws_secretsmanager as secretsmanager,
)
from constructs import Construct

DEFAULT_ENDPOINTS = ["/ussd", "/ussd/at", "/ussd/infobip", "/ussd/voda", "/ussd/json"]


class UssdflowStack(Stack):
    def __init__(self, scope: Construct, construct_id: str, **kwargs: object) -> None:
        super().__init__(scope, construct_id, **kwargs)

        prefix = str(self.node.try_get_context("prefix") or "ussdflow")
        app_secrets_name = str(self.node.try_get_context("app_secrets_name") or "")
        config_path = str(self.node.try_get_context("config_path") or "config.yaml")
        endpoints = self.node.try_get_context("endpoints") or DEFAULT_ENDPOINTS
        app_secret = (
            secretsmanager.Secret.from_secret_name_v2(
                self,
                "AppSecrets",
                app_secrets_name,
            )
            if app_secrets_name
            else None
        )

        sessions_table = dynamodb.Table(
            self,
            "SessionsTable",
            table_name=f"{prefix}-sessions",
            partition_key=dynamodb.Attribute(name="session_id", type=dynamodb.AttributeType.STRING),
            billing_mode=dynamodb.BillingMode.PAY_PER_REQUEST,
            removal_policy=RemovalPolicy.DESTROY,
            time_to_live_attribute="expires_at_epoch",
        )

        lambda_asset_path = str(Path(__file__).resolve().parents[2])
        lambda_asset_excludes = [
            ".git/**",
            ".venv/**",
            ".venv*/**",
            "venv/**",
            "env/**",
            "__pycache__/**",
            "**/__pycache__/**",
            "*.pyc",
            "tests/**",
            "infra/**",
            "cdk.out/**",
            "*.md",
        ]
        gateway_fn = lambda_.Function(
            self,
            "UssdGatewayFunction",
            function_name=f"{prefix}-gateway",
            runtime=lambda_.Runtime.PYTHON_3_12,
            handler="app.lambda_handlers.ussd_handler.lambda_handler",
            code=lambda_.Code.from_asset(lambda_asset_path, exclude=lambda_asset_excludes),
            timeout=Duration.seconds(5),
            memory_size=256,
            environment={
                "USSDFLOW_CONFIG_PATH": config_path,
                "USSDFLOW_SESSION_TABLE": sessions_table.table_name,
                "APP_SECRETS_ARN": app_secret.secret_arn if app_secret else "",
                "APP_SECRETS_NAME": app_secrets_name,
            },
        )

        sessions_table.grant_read_write_data(gateway_fn)
        if app_secret is not None:
            app_secret.grant_read(gateway_fn)

        gateway_api = apigwv2.HttpApi(
            self,
            "UssdGatewayApi",
            api_name=f"{prefix}-gateway",
        )
        integration = apigwv2_integrations.HttpLambdaIntegration("UssdGatewayIntegration", gateway_fn)
        for path in [*endpoints, "/emu/send"]:
            gateway_api.add_routes(
                path=str(path),
                methods=[apigwv2.HttpMethod.POST],
                integration=integration,
            )

        CfnOutput(self, "UssdGatewayUrl", value=gateway_api.api_endpoint)
        CfnOutput(self, "SessionsTableName", value=sessions_table.table_name)
