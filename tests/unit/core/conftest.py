"""Shared fixtures for core unit tests"""

import pytest

from sophub.core.models import ExportableSOP, Step, StepImage, StepType


PLAINTEXT_SOP = """\
SOP: My SOP Title

Objectives and Outcomes
Achieve great things.

Logins and Prerequisites
Need admin access.

SOP Content
Step 1 — First Step
Instructions for first step.

Step 2 — Second Step
Instructions for second step.

Indicators of Success
(ignored)
"""

YAML_SOP = """\
title: My SOP Title
objectives: What this SOP achieves
prerequisites: Required logins and tools
tags:
  - Technical
steps:
  - title: First Step
    content: Instructions for first step
  - title: Second Step
    content: Instructions for second step
    type: decision
"""


@pytest.fixture(name="plaintext_sop")
def plaintext_sop_fixture():
    return PLAINTEXT_SOP


@pytest.fixture(name="yaml_sop")
def yaml_sop_fixture():
    return YAML_SOP


@pytest.fixture(name="exportable")
def exportable_fixture():
    """A document exercising multi-line text, a decision step, an image, and tags."""
    return ExportableSOP(
        title="Onboard a Client",
        objectives="Client is live.\n\nBilling is configured.",
        logins_prerequisites="CRM admin login",
        steps=[
            Step(title="Create workspace", content="Open the CRM.\nClick New.", order=0),
            Step(title="Paid plan?", content="Yes: go to billing. No: skip.", order=1,
                 type=StepType.decision),
            Step(title="Send welcome", content="Use the template.", order=2,
                 images=[StepImage(data="data:image/png;base64,iVBORw0KGgo=", caption="Template")]),
        ],
        tags=["Onboarding", "Sales"],
    )
