"""The graph scene the sequencer draws into.

``GraphRenderer`` is the interface the synchronizer, layout and traversal
animator talk to: nodes and edges addressed by id, positions, one position
animation per node, CSS-like classes and a fit-to-view. Any front end that
can do those things can render the sequencer.

``GraphModel`` is the headless implementation used by the session. It keeps
the whole scene in memory - positions, classes, opacity, running animations
and the current view transform - so the WebSocket bridge can ship snapshots
to a browser and tests can inspect exactly what would be on screen.
"""

import dataclasses
import logging
import math
import time
import typing

import stepgraph.constants.layout
import stepgraph.easing


logger = logging.getLogger(__name__)

MARKER_ID = "__marker__"
MARKER_CLASS = "marker"
HIGHLIGHT_CLASS = "highlighted"

STACK_EDGE = "chord-stack"
SEQUENCE_EDGE = "sequence"


class Point (typing.NamedTuple):

	"""A position in graph units."""

	x: float
	y: float


class Viewport (typing.NamedTuple):

	"""The size of the view the graph is drawn in."""

	width: float
	height: float

	@property
	def center (self) -> Point:
		return Point(self.width / 2, self.height / 2)

	@property
	def min_dimension (self) -> float:
		return min(self.width, self.height)


@typing.runtime_checkable
class GraphRenderer (typing.Protocol):

	"""
	Protocol for graph front ends.
	"""

	viewport: Viewport

	def add_node (self, node_id: str, label: str, position: Point, classes: typing.Iterable[str] = ()) -> None: ...

	def remove_node (self, node_id: str) -> None: ...

	def has_node (self, node_id: str) -> bool: ...

	def node_ids (self) -> typing.List[str]: ...

	def node_position (self, node_id: str) -> Point: ...

	def set_node_position (self, node_id: str, position: Point) -> None: ...

	def add_edge (self, edge_id: str, source: str, target: str, kind: str, **attributes: typing.Any) -> None: ...

	def remove_all_edges (self) -> None: ...

	def animate_position (self, node_id: str, target: Point, duration_ms: float, easing: typing.Union[str, stepgraph.easing.EasingFn] = "linear") -> None: ...

	def stop_animation (self, node_id: str) -> None: ...

	def set_opacity (self, node_id: str, opacity: float) -> None: ...

	def add_class (self, node_id: str, class_name: str) -> None: ...

	def remove_class (self, node_id: str, class_name: str) -> None: ...

	def fit_view (self, padding: float) -> None: ...

	def resize (self, width: float, height: float) -> None: ...


@dataclasses.dataclass
class Node:

	"""
	A node in the scene.
	"""

	node_id: str
	label: str
	position: Point
	classes: typing.Set[str] = dataclasses.field(default_factory=set)
	opacity: float = 1.0


@dataclasses.dataclass
class Edge:

	"""
	A directed edge. Chord-stack edges are drawn without arrows.
	"""

	edge_id: str
	source: str
	target: str
	kind: str
	attributes: typing.Dict[str, typing.Any] = dataclasses.field(default_factory=dict)


@dataclasses.dataclass
class Animation:

	"""
	A position animation in flight.
	"""

	start: Point
	target: Point
	duration_ms: float
	started_at: float
	easing_fn: stepgraph.easing.EasingFn = stepgraph.easing.linear


@dataclasses.dataclass
class View:

	"""
	The zoom and pan that fit the scene into the viewport.
	"""

	zoom: float = 1.0
	pan: Point = Point(0.0, 0.0)


class GraphModel:

	"""
	Headless, in-memory ``GraphRenderer``.

	Animations are not stepped by a render loop; the node's position is
	resolved from the animation's start time whenever it is read, so the model
	is always exactly where a 60 fps renderer would be.
	"""

	def __init__ (
		self,
		width: float = stepgraph.constants.layout.DEFAULT_WIDTH,
		height: float = stepgraph.constants.layout.DEFAULT_HEIGHT,
		now: typing.Callable[[], float] = time.perf_counter
	) -> None:

		"""
		Parameters:
			width: Initial viewport width in graph units.
			height: Initial viewport height in graph units.
			now: Clock used to resolve animations, in seconds. Tests pass a fake.
		"""

		self.viewport = Viewport(width, height)
		self.view = View()
		self.nodes: typing.Dict[str, Node] = {}
		self.edges: typing.Dict[str, Edge] = {}
		self.animations: typing.Dict[str, Animation] = {}
		self._now = now


	def _node (self, node_id: str) -> Node:

		if node_id not in self.nodes:
			raise KeyError(f"No node {node_id!r} in graph")

		return self.nodes[node_id]


	def add_node (self, node_id: str, label: str, position: Point, classes: typing.Iterable[str] = ()) -> None:

		"""
		Add a node. Raises ``ValueError`` if the id is already taken.
		"""

		if node_id in self.nodes:
			raise ValueError(f"Node {node_id!r} already exists")

		self.nodes[node_id] = Node(node_id=node_id, label=label, position=Point(*position), classes=set(classes))


	def remove_node (self, node_id: str) -> None:

		"""
		Remove a node, its animation and every edge touching it.
		"""

		self._node(node_id)

		del self.nodes[node_id]
		self.animations.pop(node_id, None)

		self.edges = {
			edge_id: edge for edge_id, edge in self.edges.items()
			if edge.source != node_id and edge.target != node_id
		}


	def has_node (self, node_id: str) -> bool:

		return node_id in self.nodes


	def node_ids (self) -> typing.List[str]:

		return list(self.nodes)


	def node_position (self, node_id: str) -> Point:

		"""
		Return the node's current position, following any animation in flight.
		"""

		node = self._node(node_id)
		animation = self.animations.get(node_id)

		if animation is None:
			return node.position

		t = stepgraph.easing.progress((self._now() - animation.started_at) * 1000.0, animation.duration_ms)
		position = Point(*stepgraph.easing.interpolate(animation.start, animation.target, t, animation.easing_fn))

		if t >= 1.0:
			node.position = animation.target
			del self.animations[node_id]
			return animation.target

		return position


	def set_node_position (self, node_id: str, position: Point) -> None:

		self._node(node_id).position = Point(*position)


	def add_edge (self, edge_id: str, source: str, target: str, kind: str, **attributes: typing.Any) -> None:

		"""
		Add an edge between two existing nodes.
		"""

		if edge_id in self.edges:
			raise ValueError(f"Edge {edge_id!r} already exists")

		self._node(source)
		self._node(target)

		self.edges[edge_id] = Edge(edge_id=edge_id, source=source, target=target, kind=kind, attributes=dict(attributes))


	def remove_all_edges (self) -> None:

		self.edges = {}


	def edges_of_kind (self, kind: str) -> typing.List[Edge]:

		"""
		Return every edge of one kind, in insertion order.
		"""

		return [edge for edge in self.edges.values() if edge.kind == kind]


	def animate_position (
		self,
		node_id: str,
		target: Point,
		duration_ms: float,
		easing: typing.Union[str, stepgraph.easing.EasingFn] = "linear"
	) -> None:

		"""
		Move a node to *target* over *duration_ms*, replacing any running animation.
		"""

		start = self.node_position(node_id)

		self.animations[node_id] = Animation(
			start = start,
			target = Point(*target),
			duration_ms = duration_ms,
			started_at = self._now(),
			easing_fn = stepgraph.easing.get_easing(easing)
		)


	def stop_animation (self, node_id: str) -> None:

		"""
		Freeze a node wherever its animation has got to.
		"""

		if node_id not in self.animations:
			return

		position = self.node_position(node_id)
		self.animations.pop(node_id, None)
		self._node(node_id).position = position


	def is_animating (self, node_id: str) -> bool:

		if node_id not in self.animations:
			return False

		# Reading the position retires a finished animation.
		self.node_position(node_id)

		return node_id in self.animations


	def set_opacity (self, node_id: str, opacity: float) -> None:

		self._node(node_id).opacity = opacity


	def add_class (self, node_id: str, class_name: str) -> None:

		self._node(node_id).classes.add(class_name)


	def remove_class (self, node_id: str, class_name: str) -> None:

		self._node(node_id).classes.discard(class_name)


	def nodes_with_class (self, class_name: str) -> typing.List[str]:

		return [node_id for node_id, node in self.nodes.items() if class_name in node.classes]


	def resize (self, width: float, height: float) -> None:

		"""
		Record a new viewport size. Zero sizes fall back to the defaults;
		negative or non-finite sizes raise ``ValueError``.
		"""

		if not (math.isfinite(width) and math.isfinite(height)) or width < 0 or height < 0:
			raise ValueError(f"Viewport size must be finite and non-negative, got {width} x {height}")

		self.viewport = Viewport(
			width or stepgraph.constants.layout.DEFAULT_WIDTH,
			height or stepgraph.constants.layout.DEFAULT_HEIGHT
		)


	def fit_view (self, padding: float) -> None:

		"""
		Zoom and pan so every visible node fits inside the viewport with *padding* on each side.

		Hidden nodes (opacity 0, i.e. the parked marker) are ignored.
		"""

		visible = [node for node in self.nodes.values() if node.opacity > 0]

		if not visible:
			self.view = View()
			return

		radius = stepgraph.constants.layout.NODE_DIAMETER / 2
		positions = [self.node_position(node.node_id) for node in visible]

		min_x = min(p.x for p in positions) - radius
		max_x = max(p.x for p in positions) + radius
		min_y = min(p.y for p in positions) - radius
		max_y = max(p.y for p in positions) + radius

		available_w = max(self.viewport.width - 2 * padding, 1.0)
		available_h = max(self.viewport.height - 2 * padding, 1.0)

		zoom = min(available_w / (max_x - min_x), available_h / (max_y - min_y))

		# Centre the bounding box in the viewport.
		pan = Point(
			self.viewport.width / 2 - zoom * (min_x + max_x) / 2,
			self.viewport.height / 2 - zoom * (min_y + max_y) / 2
		)

		self.view = View(zoom=zoom, pan=pan)


	def snapshot (self) -> typing.Dict[str, typing.Any]:

		"""
		Return the scene as plain JSON-serialisable data.
		"""

		nodes = []

		for node_id, node in self.nodes.items():
			position = self.node_position(node_id)
			nodes.append({
				"id": node_id,
				"label": node.label,
				"x": position.x,
				"y": position.y,
				"classes": sorted(node.classes),
				"opacity": node.opacity
			})

		animations = {}

		for node_id, animation in self.animations.items():
			animations[node_id] = {
				"from": list(animation.start),
				"to": list(animation.target),
				"duration_ms": animation.duration_ms,
				"elapsed_ms": (self._now() - animation.started_at) * 1000.0
			}

		return {
			"viewport": {"width": self.viewport.width, "height": self.viewport.height},
			"view": {"zoom": self.view.zoom, "pan": list(self.view.pan)},
			"nodes": nodes,
			"edges": [
				{"id": edge.edge_id, "source": edge.source, "target": edge.target, "kind": edge.kind, **edge.attributes}
				for edge in self.edges.values()
			],
			"animations": animations
		}
