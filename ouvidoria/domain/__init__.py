# SPDX-License-Identifier: Apache-2.0

"""
Domain logic package for the Ouvidoria platform.

Pure business rules (protocol format, status transitions, draft validation,
identity redaction) plus the lifecycle engine and response ledger, which
reach storage only through an injected repository.
"""
