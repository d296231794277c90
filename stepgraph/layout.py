"""Radial layout: chords around a clock face, stacks pointing outward.

Each chord's anchor sits on a circle at the angle of its step - step 0 at
12 o'clock, increasing clockwise - so the graph reads like the loop itself.
The circle grows until no two anchors can touch, and the higher notes of a
chord are stacked outward along the same radius so stacks never run into the
middle of the circle or into each other.
"""

import logging
import math
import typing

import stepgraph.chord_groups
import stepgraph.constants
import stepgraph.constants.layout
import stepgraph.graph


logger = logging.getLogger(__name__)


def step_angle (step: int) -> float:

	"""
	Angle of a step in radians: -pi/2 (12 o'clock) for step 0, increasing clockwise.
	"""

	return -math.pi / 2 + (step / stepgraph.constants.STEPS) * 2 * math.pi


def point_on_circle (center: stepgraph.graph.Point, radius: float, angle: float) -> stepgraph.graph.Point:

	return stepgraph.graph.Point(center.x + radius * math.cos(angle), center.y + radius * math.sin(angle))


def minimum_radius (
	steps: typing.Sequence[int],
	node_diameter: float = stepgraph.constants.layout.NODE_DIAMETER,
	min_gap: float = stepgraph.constants.layout.MIN_NODE_GAP
) -> float:

	"""
	Smallest circle radius that keeps every pair of anchors at least one node
	diameter plus *min_gap* apart, centre to centre.

	Two terms are taken, both from the chord-length formula ``c = 2r sin(theta/2)``:
	the count-based radius for *n* anchors evenly spread around the circle, and
	the radius for the two occupied steps that are closest together. Anchors sit
	at their step angles rather than evenly, so the second term is the one that
	bites when chords are on neighbouring steps.
	"""

	count = len(steps)

	if count < 2:
		return 0.0

	spacing = node_diameter + min_gap

	by_count = spacing / (2 * math.sin(math.pi / count))

	ordered = sorted(steps)
	gaps = [b - a for a, b in zip(ordered, ordered[1:])]
	gaps.append(stepgraph.constants.STEPS - ordered[-1] + ordered[0])

	closest = min(gaps) / stepgraph.constants.STEPS * 2 * math.pi
	by_separation = spacing / (2 * math.sin(closest / 2))

	return max(by_count, by_separation)


class RadialLayout:

	"""
	Places chord anchors on a circle and stacks chord members outward.
	"""

	def __init__ (
		self,
		node_diameter: float = stepgraph.constants.layout.NODE_DIAMETER,
		min_gap: float = stepgraph.constants.layout.MIN_NODE_GAP,
		stack_spacing: float = stepgraph.constants.layout.NODE_STACK_SPACING,
		base_radius_factor: float = stepgraph.constants.layout.BASE_RADIUS_FACTOR,
		seed_radius_factor: float = stepgraph.constants.layout.SEED_RADIUS_FACTOR,
		padding: float = stepgraph.constants.layout.FIT_PADDING
	) -> None:

		self.node_diameter = node_diameter
		self.min_gap = min_gap
		self.stack_spacing = stack_spacing
		self.base_radius_factor = base_radius_factor
		self.seed_radius_factor = seed_radius_factor
		self.padding = padding


	def seed_position (self, step: int, viewport: stepgraph.graph.Viewport) -> stepgraph.graph.Point:

		"""
		Provisional position for a new node, before the layout pass runs.
		"""

		return point_on_circle(viewport.center, viewport.min_dimension * self.seed_radius_factor, step_angle(step))


	def radius (self, steps: typing.Sequence[int], viewport: stepgraph.graph.Viewport) -> float:

		"""
		Circle radius for anchors at *steps* in *viewport*.
		"""

		base = viewport.min_dimension * self.base_radius_factor

		return max(base, minimum_radius(steps, self.node_diameter, self.min_gap))


	def anchor_positions (
		self,
		step_sequence: typing.Sequence[stepgraph.chord_groups.ChordGroup],
		viewport: stepgraph.graph.Viewport
	) -> typing.Dict[str, stepgraph.graph.Point]:

		"""
		Return ``{anchor_id: position}`` for every chord.
		"""

		radius = self.radius([group.step for group in step_sequence], viewport)
		center = viewport.center

		return {
			group.anchor_id: point_on_circle(center, radius, step_angle(group.step))
			for group in step_sequence
		}


	def stack_positions (
		self,
		group: stepgraph.chord_groups.ChordGroup,
		anchor: stepgraph.graph.Point
	) -> typing.Dict[str, stepgraph.graph.Point]:

		"""
		Return positions for every member of a chord, anchor innermost.
		"""

		angle = step_angle(group.step)
		dx = math.cos(angle)
		dy = math.sin(angle)
		count = len(group.node_ids)

		positions: typing.Dict[str, stepgraph.graph.Point] = {}

		for index, node_id in enumerate(group.node_ids):
			rank = count - 1 - index
			positions[node_id] = stepgraph.graph.Point(
				anchor.x + rank * self.stack_spacing * dx,
				anchor.y + rank * self.stack_spacing * dy
			)

		return positions


	def apply (
		self,
		graph: stepgraph.graph.GraphRenderer,
		step_sequence: typing.Sequence[stepgraph.chord_groups.ChordGroup],
		viewport: typing.Optional[stepgraph.graph.Viewport] = None
	) -> None:

		"""
		Position every chord node in *graph* and fit the view.

		The traversal marker must already be halted; its animation would
		otherwise keep heading for positions that no longer exist.
		"""

		if viewport is None:
			viewport = graph.viewport

		anchors = self.anchor_positions(step_sequence, viewport)

		for anchor_id, position in anchors.items():
			graph.set_node_position(anchor_id, position)

		for group in step_sequence:
			if len(group) <= 1:
				continue
			for node_id, position in self.stack_positions(group, anchors[group.anchor_id]).items():
				graph.set_node_position(node_id, position)

		graph.fit_view(self.padding)

		logger.debug(f"Layout placed {len(anchors)} anchors in {viewport.width:.0f}x{viewport.height:.0f}")
