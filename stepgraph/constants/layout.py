"""Radial layout constants, in graph units (pixels in the browser view).

The node diameter and minimum gap together decide how far apart two anchors
must be; the layout grows the circle until that holds for every pair.
"""

NODE_DIAMETER = 38
MIN_NODE_GAP = 8

# Distance between node centres inside a chord stack.
NODE_STACK_SPACING = 52

# Circle radius as a fraction of the smaller viewport dimension.
BASE_RADIUS_FACTOR = 0.28
SEED_RADIUS_FACTOR = 0.35

FIT_PADDING = 40

# Used when the view has not reported a size yet.
DEFAULT_WIDTH = 400
DEFAULT_HEIGHT = 380

RESIZE_DEBOUNCE_SECONDS = 0.08
