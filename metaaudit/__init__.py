"""Metadata conformance audit for the bilingual tool catalog."""

from .logging_config import configure_logging

__all__ = ["configure_logging"]
