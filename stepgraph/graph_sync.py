import logging

import stepgraph.chord_groups
import stepgraph.constants.pitches
import stepgraph.graph
import stepgraph.grid
import stepgraph.layout
import stepgraph.traversal


logger = logging.getLogger(__name__)


class GraphSynchronizer:

	"""
	Rebuilds the graph from the grid after every mutation.

	Nodes are diffed by event-node id - survivors keep their position until the
	layout moves them, new ones appear at a provisional spot on their step's
	angle - while edges are always torn down and rebuilt from scratch.

	Solo notes become a single node with sequence edges in and out. Chords
	become a stack: only the anchor (lowest note) carries sequence edges, and
	the members are joined top to bottom by arrowless chord-stack edges.
	"""

	def __init__ (
		self,
		graph: stepgraph.graph.GraphRenderer,
		grouping: stepgraph.chord_groups.ChordGrouping,
		layout: stepgraph.layout.RadialLayout,
		animator: stepgraph.traversal.TraversalAnimator
	) -> None:

		self.graph = graph
		self.grouping = grouping
		self.layout = layout
		self.animator = animator

		self.animator.ensure_marker()


	def rebuild (self, grid: stepgraph.grid.Grid) -> None:

		"""
		Recompute chord groups from *grid* and bring the graph in line with them.
		"""

		self.grouping.rebuild(grid)

		# Positions are about to change under the marker.
		self.animator.halt()

		valid_ids = self.grouping.node_ids()
		marker_id = self.animator.marker_id

		for node_id in self.graph.node_ids():

			if node_id == marker_id:
				continue

			if node_id in valid_ids:
				self.graph.remove_class(node_id, self.animator.highlight_class)
			else:
				self.graph.remove_node(node_id)

		self.graph.remove_all_edges()

		viewport = self.graph.viewport

		for group in self.grouping.sequence:
			for pitch, node_id in zip(group.pitches, group.node_ids):
				if not self.graph.has_node(node_id):
					self.graph.add_node(
						node_id,
						stepgraph.constants.pitches.LABELS[pitch],
						self.layout.seed_position(group.step, viewport)
					)

		if not valid_ids:
			logger.debug("Grid is empty - graph cleared")
			return

		self._add_stack_edges()
		self._add_sequence_edges()

		self.layout.apply(self.graph, self.grouping.sequence, viewport)


	def _add_stack_edges (self) -> None:

		for group in self.grouping.sequence:
			for index in range(len(group.node_ids) - 1):
				self.graph.add_edge(
					f"stack-{group.step}-{index}",
					group.node_ids[index],
					group.node_ids[index + 1],
					stepgraph.graph.STACK_EDGE
				)


	def _add_sequence_edges (self) -> None:

		sequence = self.grouping.sequence
		count = len(sequence)

		if count < 2:
			return

		for index, group in enumerate(sequence):

			following = sequence[(index + 1) % count]

			# Always the forward grid distance; playback mode only changes visit order.
			self.graph.add_edge(
				f"seq-{index}",
				group.anchor_id,
				following.anchor_id,
				stepgraph.graph.SEQUENCE_EDGE,
				distance = stepgraph.chord_groups.step_distance(group.step, following.step),
				sequence_index = index
			)

