import itertools
import math
import random

import pytest

import stepgraph.chord_groups
import stepgraph.graph
import stepgraph.grid
import stepgraph.layout


def _sequence (steps: list[int], pitches: tuple = ("C4",)) -> list[stepgraph.chord_groups.ChordGroup]:

	grid = stepgraph.grid.Grid()

	for step in steps:
		for pitch in pitches:
			grid.set(pitch, step, True)

	return stepgraph.chord_groups.build_step_sequence(stepgraph.chord_groups.build_chord_groups(grid))


def _distance (a: stepgraph.graph.Point, b: stepgraph.graph.Point) -> float:

	return math.hypot(a.x - b.x, a.y - b.y)


def test_step_zero_is_at_twelve_o_clock () -> None:

	"""Step 0 points straight up and step 4 points right (clockwise)."""

	assert stepgraph.layout.step_angle(0) == pytest.approx(-math.pi / 2)
	assert stepgraph.layout.step_angle(4) == pytest.approx(0.0)
	assert stepgraph.layout.step_angle(8) == pytest.approx(math.pi / 2)


def test_minimum_radius_for_even_spacing () -> None:

	"""Evenly spaced anchors use the regular-polygon chord-length radius."""

	radius = stepgraph.layout.minimum_radius([0, 4, 8, 12])

	assert radius == pytest.approx(46 / (2 * math.sin(math.pi / 4)))
	assert stepgraph.layout.minimum_radius([3]) == 0.0
	assert stepgraph.layout.minimum_radius([]) == 0.0


def test_minimum_radius_grows_for_neighbouring_steps () -> None:

	"""Anchors on adjacent steps force a bigger circle than the count alone."""

	radius = stepgraph.layout.minimum_radius([0, 1])

	assert radius == pytest.approx(46 / (2 * math.sin(math.pi / 16)))


@pytest.mark.parametrize("width,height", [(400, 380), (120, 90), (1600, 1200)])
def test_anchors_never_collide (width: float, height: float) -> None:

	"""Any two anchors are at least a node diameter plus the gap apart."""

	layout = stepgraph.layout.RadialLayout()
	viewport = stepgraph.graph.Viewport(width, height)
	rng = random.Random(3)

	step_sets = [[0, 1], list(range(16)), [14, 15, 0], [0, 8]]
	step_sets += [sorted(rng.sample(range(16), rng.randint(2, 16))) for _ in range(40)]

	for steps in step_sets:
		positions = layout.anchor_positions(_sequence(steps), viewport)
		for a, b in itertools.combinations(positions.values(), 2):
			assert _distance(a, b) >= 38 + 8 - 1e-9, f"anchors too close for steps {steps}"


def test_anchors_sit_on_circle_around_viewport_centre () -> None:

	"""Anchors share one radius around the viewport centre, at least the base radius."""

	layout = stepgraph.layout.RadialLayout()
	viewport = stepgraph.graph.Viewport(400, 380)

	positions = layout.anchor_positions(_sequence([0, 5, 9]), viewport)
	radii = [_distance(p, viewport.center) for p in positions.values()]

	assert max(radii) == pytest.approx(min(radii))
	assert radii[0] >= 380 * 0.28 - 1e-9


def test_stack_points_outward_along_step_radius () -> None:

	"""Higher chord members step outward from the anchor along the step's angle."""

	layout = stepgraph.layout.RadialLayout()
	group = _sequence([4], pitches=("G4", "E4", "C4"))[0]

	positions = layout.stack_positions(group, stepgraph.graph.Point(300.0, 190.0))

	# Step 4 points along +x.
	assert positions["C4@4"] == pytest.approx((300.0, 190.0))
	assert positions["E4@4"] == pytest.approx((352.0, 190.0))
	assert positions["G4@4"] == pytest.approx((404.0, 190.0))


def test_apply_positions_nodes_and_fits (graph: stepgraph.graph.GraphModel) -> None:

	"""apply() moves every chord node and fits the view."""

	layout = stepgraph.layout.RadialLayout()
	sequence = _sequence([0, 8], pitches=("E4", "C4"))

	for group in sequence:
		for node_id in group.node_ids:
			graph.add_node(node_id, node_id, stepgraph.graph.Point(0.0, 0.0))

	layout.apply(graph, sequence)

	center = graph.viewport.center
	anchor_top = graph.node_position("C4@0")
	member_top = graph.node_position("E4@0")

	assert anchor_top.x == pytest.approx(center.x)
	assert anchor_top.y < center.y
	assert member_top.y == pytest.approx(anchor_top.y - 52)
	assert graph.view.zoom > 0
