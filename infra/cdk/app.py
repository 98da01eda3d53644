#!/usr/bin/env python3
from __future__ import annotations

import aws_cdk as cdk

from ussdflow_stack import UssdflowStack


app = cdk.App()
prefix = str(app.node.try_get_context("prefix") or "ussdflow")

gateway_stack = UssdflowStack(
    app,
    f"{prefix}-gateway",
    description="USSD gateway Lambda, HTTP API routes and session table",
    env=cdk.Environment(
        account=app.node.try_get_context("account"),
        region=app.node.try_get_context("region"),
    ),
)
cdk.Tags.of(gateway_stack).add("service", prefix)

app.synth()
