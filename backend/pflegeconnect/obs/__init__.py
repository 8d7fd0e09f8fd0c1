"""Observability package bootstrap."""

from __future__ import annotations

from logging import Logger

from pflegeconnect.obs import logging as obs_logging

_initialised = False


def init() -> Logger:
	"""Install JSON logging once per process and return the engine logger."""
	global _initialised
	if not _initialised:
		obs_logging.configure_logging()
		_initialised = True
	return obs_logging.get_logger()


__all__ = ["init"]
