"""
acidloop - an endless, self-composing acid techno loop for MIDI gear.

acidloop writes and plays two acid bass lines and a four-voice drum pattern,
and keeps changing them: lines and drum patterns are rewritten every few
bars, drum voices drop in and out, and the synth knobs drift on their own
as if someone were playing with them.  It sends pure MIDI, so the sound
comes from whatever is plugged in - a TB-303 clone, a drum machine, a DAW.

How it fits together:

- **Parameters.** Every control (tempo, cutoff, mutes, "new pattern"
  triggers) is a :class:`~acidloop.parameter.Parameter`: a value that tells
  its subscribers whenever it is written.  Subscribing hands over the current
  value straight away, so parts wire themselves up just by subscribing.
- **Clock.** A self-rescheduling step clock with swing publishes the current
  step (0-15) on ``clock.current_step``.  Every instrument and the autopilot
  follow that one signal.
- **Generators.** ``ThreeOhGen`` writes bass lines from a shared note set,
  ``NineOhGen`` writes kick, hat and snare lanes.  Both are probabilistic
  and take a seedable ``random.Random``.
- **Autopilot.** Counts bars from the step signal and decides when to ask
  for new lines, a new note set, new drums or new mutes, and steps the knob
  wanderers ten times a second.

Minimal example:

    ```python
    import acidloop

    engine = acidloop.Engine(bpm=140)
    engine.play()
    ```

Or from a shell, with settings in ``config.yaml``::

    python -m acidloop --config config.yaml

Package-level exports: ``Engine``, ``Parameter``, ``Clock``, ``ThreeOhGen``,
``NineOhGen``, ``WanderingParameter``, ``AutoPilot``.
"""

import acidloop.autopilot
import acidloop.clock
import acidloop.engine
import acidloop.parameter
import acidloop.pattern
import acidloop.wandering


AutoPilot = acidloop.autopilot.AutoPilot
Clock = acidloop.clock.Clock
Engine = acidloop.engine.Engine
NineOhGen = acidloop.pattern.NineOhGen
Parameter = acidloop.parameter.Parameter
ThreeOhGen = acidloop.pattern.ThreeOhGen
WanderingParameter = acidloop.wandering.WanderingParameter
