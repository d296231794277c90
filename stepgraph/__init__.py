
"""
stepgraph - a step sequencer whose grid is also a graph.

A 13-pitch by 16-step grid plays as a loop, and the same grid is drawn as a
graph: every note occurrence is a node, notes sounding together stack into a
chord pointing away from the centre of a clock face, and sequence edges join
each chord to the next. While the loop plays, a marker glides along those
edges, arriving at each chord exactly when it sounds.

- **Chords, not cells.** Active cells are grouped by step into chords; the
  lowest note is the anchor that carries the sequence edges and sits on the
  circle. A repeated pitch at another step is a separate node, never a loop.
- **Forward, reverse and ping-pong.** Mode changes made while playing wait
  for the end of the pass, so the loop never jumps mid-phrase.
- **Phase-accurate visuals.** Highlights and the marker are scheduled at
  each tick's own timestamp, not whenever the loop gets round to them.
- **Equal-power chords.** Each note of a k-note chord plays at 1/sqrt(k)
  velocity so chords and single notes sit at the same level.
- **Collision-free layout.** The circle grows until no two chord anchors
  can touch, whatever the viewport size.

Integration:

- **MIDI out** through ``mido`` to any hardware or software synth, with
  filter, envelope, reverb and waveform controls passed through as CCs and
  program changes.
- **OSC control** (``session.osc()``) for toggles, tempo, mode and transport.
- **Browser graph view** (``session.web_ui()``) streaming the scene over
  WebSockets.

Minimal example:

    ```python
    import stepgraph

    session = stepgraph.Session(bpm=110, mode="pingpong")

    for pitch in ("C4", "E4", "G4"):
        session.toggle(pitch, 0)

    session.toggle("A4", 6)
    session.toggle("F4", 10)

    session.play()
    ```

Package-level exports: ``Session``, ``Grid``, ``GraphModel``, ``MidiVoice``.
"""

import stepgraph.graph
import stepgraph.grid
import stepgraph.session
import stepgraph.voice


Session = stepgraph.session.Session
Grid = stepgraph.grid.Grid
GraphModel = stepgraph.graph.GraphModel
MidiVoice = stepgraph.voice.MidiVoice
