"""Coalescing timer for bursty event sources."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Generic, Optional, TypeVar

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class Debouncer(Generic[T]):
	"""Deliver only the latest value of a burst once `window` seconds pass quietly.

	Each `submit` restarts the timer, so a stream of events spaced closer than
	the window results in a single callback carrying the last value.
	"""

	def __init__(
		self,
		window: float,
		callback: Callable[[T], None],
		loop: Optional[asyncio.AbstractEventLoop] = None,
	) -> None:
		if window < 0:
			raise ValueError("Debounce window must not be negative.")
		self.window = window
		self.callback = callback
		self._loop = loop
		self._handle: Optional[asyncio.TimerHandle] = None
		self._latest: Optional[T] = None

	@property
	def pending(self) -> bool:
		return self._handle is not None

	def submit(self, value: T) -> None:
		"""Record `value` and (re)start the quiet-period timer."""
		self._latest = value
		if self._handle is not None:
			self._handle.cancel()
		loop = self._loop or asyncio.get_running_loop()
		self._handle = loop.call_later(self.window, self._fire)

	def flush(self) -> None:
		"""Deliver the pending value immediately, if any."""
		if self._handle is None:
			return
		self._handle.cancel()
		self._fire()

	def cancel(self) -> None:
		"""Drop the pending value without delivering it."""
		if self._handle is not None:
			self._handle.cancel()
		self._handle = None
		self._latest = None

	def _fire(self) -> None:
		value = self._latest
		self._handle = None
		self._latest = None
		try:
			self.callback(value)
		except Exception as exc:  # pylint: disable=broad-exception-caught
			LOGGER.error("Debounced callback failed: %s", exc)
