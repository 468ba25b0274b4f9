# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

import pytest

from hapf_core.cli.config import HapfConfig
from hapf_server.main import create_app


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def app(tmp_path, monkeypatch):
    """Analysis API built from defaults, isolated from any hapf.yaml in the working directory."""
    monkeypatch.chdir(tmp_path)
    return create_app(HapfConfig(max_document_bytes=4096))
