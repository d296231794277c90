import dataclasses
import logging
import typing

import stepgraph.chord_groups
import stepgraph.graph


logger = logging.getLogger(__name__)


@dataclasses.dataclass (frozen=True)
class Traversal:

	"""
	One marker glide between two sounding chords.
	"""

	source_id: str
	target_id: str
	ticks: int
	duration_ms: float


def find_next_chord (
	order: typing.Sequence[int],
	start_position: int,
	groups: typing.Mapping[int, stepgraph.chord_groups.ChordGroup]
) -> typing.Tuple[typing.Optional[stepgraph.chord_groups.ChordGroup], int]:

	"""
	Walk *order* from *start_position*, wrapping, to the first step with a chord.

	Returns the chord and how many ticks away it is (the chord at
	*start_position* itself is one tick away), or ``(None, 1)`` when no step in
	the order has a chord.
	"""

	length = len(order)

	for offset in range(length):
		step = order[(start_position + offset) % length]
		if step in groups:
			return groups[step], offset + 1

	return None, 1


class TraversalAnimator:

	"""
	Highlights the sounding chord and glides the marker to the next one.

	The marker skips over rests: its glide lasts as many sixteenths as there
	are raw ticks until the next sounding chord, so it arrives exactly when
	that chord plays.
	"""

	def __init__ (
		self,
		graph: stepgraph.graph.GraphRenderer,
		grouping: stepgraph.chord_groups.ChordGrouping,
		marker_id: str = stepgraph.graph.MARKER_ID,
		highlight_class: str = stepgraph.graph.HIGHLIGHT_CLASS,
		easing: str = "linear"
	) -> None:

		self.graph = graph
		self.grouping = grouping
		self.marker_id = marker_id
		self.highlight_class = highlight_class
		self.easing = easing

		self._highlighted: typing.List[str] = []


	def ensure_marker (self) -> None:

		"""
		Add the hidden marker node if the graph does not have it yet.
		"""

		if self.graph.has_node(self.marker_id):
			return

		self.graph.add_node(self.marker_id, "", stepgraph.graph.Point(0.0, 0.0), classes=(stepgraph.graph.MARKER_CLASS,))
		self.graph.set_opacity(self.marker_id, 0.0)


	def clear_highlights (self) -> None:

		for node_id in self._highlighted:
			if self.graph.has_node(node_id):
				self.graph.remove_class(node_id, self.highlight_class)

		self._highlighted = []


	def halt (self) -> None:

		"""
		Stop and hide the marker and drop all highlights.
		"""

		self.clear_highlights()

		if self.graph.has_node(self.marker_id):
			self.graph.stop_animation(self.marker_id)
			self.graph.set_opacity(self.marker_id, 0.0)


	def on_step (
		self,
		step: int,
		next_position: int,
		order: typing.Sequence[int],
		step_seconds: float
	) -> typing.Optional[Traversal]:

		"""
		Update the scene for the tick that played *step*.

		Parameters:
			step: The step that just sounded.
			next_position: Cursor position of the following tick in *order*.
			order: The step order the following tick reads from. This is the
				incoming mode's order when a mode change takes over at the next tick.
			step_seconds: Length of one sixteenth note at the current tempo.

		Returns the marker glide that was started, or None when there was
		nothing to animate.
		"""

		self.clear_highlights()

		group = self.grouping.get(step)

		if group is None:
			return None

		for node_id in group.node_ids:
			if self.graph.has_node(node_id):
				self.graph.add_class(node_id, self.highlight_class)
				self._highlighted.append(node_id)

		if len(self.grouping.sequence) < 2 or not self.graph.has_node(self.marker_id):
			return None

		target, ticks = find_next_chord(order, next_position, self.grouping.groups)

		if target is None:
			return None

		if not self.graph.has_node(group.anchor_id) or not self.graph.has_node(target.anchor_id):
			return None

		ticks = max(ticks, 1)
		duration_ms = ticks * step_seconds * 1000.0

		self.graph.stop_animation(self.marker_id)
		self.graph.set_node_position(self.marker_id, self.graph.node_position(group.anchor_id))
		self.graph.set_opacity(self.marker_id, 1.0)
		self.graph.animate_position(self.marker_id, self.graph.node_position(target.anchor_id), duration_ms, self.easing)

		return Traversal(
			source_id = group.anchor_id,
			target_id = target.anchor_id,
			ticks = ticks,
			duration_ms = duration_ms
		)
