"""Chord grouping - what sounds together at each step.

Every step with at least one active pitch becomes a ``ChordGroup``. Each pitch
occurrence gets its own event-node id (``"<pitch>@<step>"``) so the same pitch
at two different steps is two distinct graph nodes; a pitch-only id would merge
them and turn a repeated note into a self-loop.

The lowest pitch of a group is its **anchor**: it carries the sequence edges
between chords and is the point the layout places on the circle.
"""

import dataclasses
import logging
import typing

import stepgraph.constants.pitches
import stepgraph.grid


logger = logging.getLogger(__name__)


def event_id (pitch: str, step: int) -> str:

	"""
	Return the graph node id for one occurrence of a pitch at a step.
	"""

	return f"{pitch}@{step}"


@dataclasses.dataclass (frozen=True)
class ChordGroup:

	"""
	The pitches active at one step, highest first, with one event-node id each.
	"""

	step: int
	pitches: typing.Tuple[str, ...]
	node_ids: typing.Tuple[str, ...]

	@property
	def anchor (self) -> str:
		"""The lowest pitch in the group."""
		return self.pitches[-1]

	@property
	def anchor_id (self) -> str:
		"""The event-node id of the lowest pitch."""
		return self.node_ids[-1]

	def __len__ (self) -> int:
		return len(self.pitches)


def build_chord_groups (grid: stepgraph.grid.Grid) -> typing.Dict[int, ChordGroup]:

	"""
	Group the grid's active cells by step.

	Returns a new mapping ``{step: ChordGroup}`` in increasing step order,
	containing only steps with at least one active pitch. An empty grid gives an
	empty mapping.
	"""

	groups: typing.Dict[int, ChordGroup] = {}

	for step in range(stepgraph.constants.pitches.STEPS):

		pitches = grid.active_pitches(step)

		if not pitches:
			continue

		groups[step] = ChordGroup(
			step = step,
			pitches = tuple(pitches),
			node_ids = tuple(event_id(pitch, step) for pitch in pitches)
		)

	return groups


def build_step_sequence (groups: typing.Dict[int, ChordGroup]) -> typing.List[ChordGroup]:

	"""
	Return the chord groups as a timeline ordered by step.
	"""

	return [groups[step] for step in sorted(groups)]


def step_distance (step: int, next_step: int) -> int:

	"""
	Forward distance in steps from one chord to the next, wrapping past the last step.

	The result is never less than 1, so a traversal never gets a zero duration.
	"""

	return max((next_step - step) % stepgraph.constants.pitches.STEPS, 1)


class ChordGrouping:

	"""
	The current chord groups and step sequence for a session.

	Both are replaced together by ``rebuild()``; there is no incremental update.
	The playback clock reads pitches from here on every tick, and the graph
	synchronizer and traversal animator read groups and anchors.
	"""

	def __init__ (self) -> None:

		self.groups: typing.Dict[int, ChordGroup] = {}
		self.sequence: typing.List[ChordGroup] = []


	def rebuild (self, grid: stepgraph.grid.Grid) -> None:

		"""
		Recompute every chord group from the grid.
		"""

		groups = build_chord_groups(grid)

		self.groups = groups
		self.sequence = build_step_sequence(groups)

		logger.debug(f"Chord grouping rebuilt: {len(self.sequence)} chords at steps {list(groups)}")


	def get (self, step: int) -> typing.Optional[ChordGroup]:

		"""
		Return the group at a step, or None for a rest.
		"""

		return self.groups.get(step)


	def pitches_at (self, step: int) -> typing.Tuple[str, ...]:

		"""
		Return the pitches at a step, or an empty tuple for a rest.
		"""

		group = self.groups.get(step)

		if group is None:
			return ()

		return group.pitches


	def node_ids (self) -> typing.Set[str]:

		"""
		Return every event-node id in the current grouping.
		"""

		return {node_id for group in self.sequence for node_id in group.node_ids}
