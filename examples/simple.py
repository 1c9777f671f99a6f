import logging

import acidloop

logging.basicConfig(level=logging.INFO)

engine = acidloop.Engine(bpm=138, shuffle=0.1, seed=303)

# Leave the pattern changes to the autopilot, but keep the knobs still.
engine.switches()["knobs"].value = False

engine.notes[0].parameters["cutoff"].value = 250
engine.delay.feedback.value = 0.6

engine.play()
