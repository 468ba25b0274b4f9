# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Checking of HAPF documents stored on disk."""

from .checker import CheckResult, DocumentChecker, FileIssue

__all__ = ["DocumentChecker", "CheckResult", "FileIssue"]
