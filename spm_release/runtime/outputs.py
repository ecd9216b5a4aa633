# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Step outputs and failure reporting for GitHub Actions.

Outputs are appended to the file named by GITHUB_OUTPUT using the heredoc
form, which handles multi-line values like the checksum list:

    checksums<<ghadelimiter_<uuid>
    <line>
    <line>
    ghadelimiter_<uuid>

Outside of Actions there is no output file and the values are only logged.
"""

import logging
import os
import sys
import uuid
from collections.abc import Mapping
from pathlib import Path
from typing import TextIO

from spm_release.logging.logger import get_logger

_logger: logging.Logger = get_logger(__name__)


def format_output(name: str, value: str) -> str:
    """Render one output in heredoc form, choosing a delimiter not in the value."""
    delimiter = f"ghadelimiter_{uuid.uuid4()}"
    while delimiter in value or delimiter in name:
        delimiter = f"ghadelimiter_{uuid.uuid4()}"
    body = value if value.endswith("\n") or not value else value + "\n"
    return f"{name}<<{delimiter}\n{body}{delimiter}\n"


def write_step_outputs(outputs: Mapping[str, str], environ: Mapping[str, str] | None = None) -> Path | None:
    """
    Append outputs to $GITHUB_OUTPUT. Returns the file written, or None
    when not running under Actions.
    """
    env = os.environ if environ is None else environ
    output_file = env.get("GITHUB_OUTPUT")

    if not output_file:
        _logger.info("Step outputs", extra={"outputs": dict(outputs)})
        return None

    path = Path(output_file)
    with open(path, "a", encoding="utf-8") as f:
        for name, value in outputs.items():
            f.write(format_output(name, value))

    _logger.info("Step outputs written", extra={"path": str(path), "names": sorted(outputs)})
    return path


def _escape_annotation(message: str) -> str:
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def report_failure(
    message: str,
    environ: Mapping[str, str] | None = None,
    stream: TextIO | None = None,
) -> None:
    """Emit an ::error:: workflow command when running under Actions."""
    env = os.environ if environ is None else environ
    if env.get("GITHUB_ACTIONS") != "true":
        return
    out = stream if stream is not None else sys.stdout
    out.write(f"::error::{_escape_annotation(message)}\n")
    out.flush()
