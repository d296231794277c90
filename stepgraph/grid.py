import logging
import typing

import stepgraph.constants.pitches


logger = logging.getLogger(__name__)


class Grid:

	"""
	The boolean pitch × step matrix - the single source of truth for what plays.

	The grid is a fixed 13 × 16 matrix. It is never resized; the only mutations
	are toggling or setting a single cell and clearing everything. Rows are kept
	in the canonical high-to-low pitch order so every reader sees pitches in the
	same order.
	"""

	def __init__ (self) -> None:

		"""
		Initialize an empty grid with every cell off.
		"""

		self._cells: typing.Dict[str, typing.List[bool]] = {
			pitch: [False] * stepgraph.constants.pitches.STEPS
			for pitch in stepgraph.constants.pitches.PITCHES
		}


	def _check (self, pitch: str, step: int) -> None:

		if pitch not in self._cells:
			raise ValueError(f"Unknown pitch {pitch!r}. Grid pitches: {', '.join(stepgraph.constants.pitches.PITCHES)}")

		if not 0 <= step < stepgraph.constants.pitches.STEPS:
			raise ValueError(f"Step must be in 0..{stepgraph.constants.pitches.STEPS - 1}, got {step}")


	def is_active (self, pitch: str, step: int) -> bool:

		"""
		Return whether the cell at (pitch, step) is on.
		"""

		self._check(pitch, step)

		return self._cells[pitch][step]


	def set (self, pitch: str, step: int, active: bool) -> None:

		"""
		Turn a single cell on or off.
		"""

		self._check(pitch, step)
		self._cells[pitch][step] = bool(active)


	def toggle (self, pitch: str, step: int) -> bool:

		"""
		Flip a single cell and return its new state.
		"""

		self._check(pitch, step)

		self._cells[pitch][step] = not self._cells[pitch][step]

		logger.debug(f"Toggled {pitch}@{step} -> {self._cells[pitch][step]}")

		return self._cells[pitch][step]


	def clear (self) -> None:

		"""
		Turn every cell off.
		"""

		for row in self._cells.values():
			for step in range(len(row)):
				row[step] = False


	def active_pitches (self, step: int) -> typing.List[str]:

		"""
		Return the pitches that are on at a step, highest first.
		"""

		if not 0 <= step < stepgraph.constants.pitches.STEPS:
			raise ValueError(f"Step must be in 0..{stepgraph.constants.pitches.STEPS - 1}, got {step}")

		return [pitch for pitch in stepgraph.constants.pitches.PITCHES if self._cells[pitch][step]]


	def active_count (self) -> int:

		"""
		Return the number of cells that are on.
		"""

		return sum(sum(row) for row in self._cells.values())


	def is_empty (self) -> bool:

		"""
		Return True when no cell is on.
		"""

		return not any(any(row) for row in self._cells.values())


	def rows (self) -> typing.Dict[str, typing.List[bool]]:

		"""
		Return a copy of the grid as ``{pitch: [bool] * 16}`` in high-to-low order.
		"""

		return {pitch: list(row) for pitch, row in self._cells.items()}
