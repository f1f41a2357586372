# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Protocol number issuance.

Protocols have the form ``YYYY-NNNNNN``: the year of submission and a
zero-padded sequence scoped to that year. The sequence lives in storage as an
atomically incremented counter, so issuance survives restarts and multiple
server instances.
"""

import logging
from datetime import datetime
from typing import Optional
from opentelemetry import trace

from ..models.entities import PROTOCOLO_PATTERN

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

SEQUENCE_WIDTH = 6


def format_protocolo(year: int, sequence: int) -> str:
    """Render a protocol string from its year and sequence."""
    return f"{year:04d}-{sequence:0{SEQUENCE_WIDTH}d}"


def normalize_protocolo(raw: Optional[str]) -> Optional[str]:
    """
    Return the protocol string if it is well formed, otherwise ``None``.

    Surrounding whitespace is ignored; matching is otherwise exact.
    """
    if not isinstance(raw, str):
        return None
    candidate = raw.strip()
    if not PROTOCOLO_PATTERN.match(candidate):
        return None
    return candidate


class ProtocolGenerator:
    """Issues unique protocol identifiers from a per-year storage counter."""

    def __init__(self, repository):
        self.repository = repository

    def issue(self, now: datetime) -> str:
        """
        Allocate the next protocol for the year of ``now``.

        Raises:
            ConflictException: if the counter could not be incremented
                atomically; the caller must allocate again.
        """
        with tracer.start_as_current_span("protocol.issue") as span:
            year = now.year
            sequence = self.repository.next_sequence(year)
            protocolo = format_protocolo(year, sequence)

            span.set_attributes({
                "protocol.year": year,
                "protocol.sequence": sequence
            })
            logger.debug(f"Issued protocol {protocolo}")
            return protocolo
