# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Buildbot API error types.

These are intentionally lightweight so the resolver, the navigator and the CLI
can catch specific error classes without creating import cycles.
"""

from __future__ import annotations


class BuildbotAPIError(Exception):
    def __init__(self, *, endpoint: str, message: str):
        super().__init__(message)
        self.endpoint = str(endpoint or "")


class NetworkError(BuildbotAPIError):
    """Connection failure or timeout; no response was received."""


class HTTPError(BuildbotAPIError):
    def __init__(self, *, status_code: int, endpoint: str, message: str):
        super().__init__(endpoint=endpoint, message=message)
        self.status_code = int(status_code)


class ParseError(BuildbotAPIError):
    """Response body is not the JSON envelope the endpoint promises."""


class MissingFieldError(BuildbotAPIError):
    """A well-formed record lacks a field we require (upstream schema drift)."""

    def __init__(self, *, field: str, record: str, endpoint: str = ""):
        super().__init__(endpoint=endpoint, message=f"{record} record is missing required field '{field}'")
        self.field = str(field)
        self.record = str(record)


class ConfigError(ValueError):
    pass
