"""Observable value cells shared between the clock, generators and instruments.

A :class:`Parameter` holds one value and a list of subscribers.  Every write
publishes the new value to every subscriber, synchronously and in
subscription order, even when the value did not change - triggers rely on
being set to ``True`` again to fire again.

Subscribing replays the current value to the new subscriber before it is
registered, so a component can initialise itself from a parameter without a
separate read:

```python
cutoff = acidloop.parameter.parameter("Cutoff", (30, 700), 400)
cutoff.subscribe(lambda v: print(f"cutoff is {v}"))   # prints 400 immediately
cutoff.value = 520                                      # prints 520
```

Subscriptions are permanent.  A subscriber must never write back into the
parameter it observes: dispatch is re-entrant and there is no cycle
detection, so such a write recurses until the interpreter gives up.
"""

import typing


T = typing.TypeVar("T")

CallbackType = typing.Callable[[typing.Any], typing.Any]
Bounds = typing.Tuple[float, float]


class Parameter (typing.Generic[T]):

	"""
	A named, observable, mutable value.
	"""

	def __init__ (self, name: str, value: T, bounds: typing.Optional[Bounds] = None) -> None:

		"""
		Create a parameter.

		Parameters:
			name: Human-readable name, also used as the OSC address segment.
			value: Initial value.
			bounds: Optional ``(min, max)`` range.  Bounds are advisory - writes
				outside them are accepted - but wanderers and MIDI sinks scale
				against them.
		"""

		if bounds is not None and bounds[0] > bounds[1]:
			raise ValueError(f"Parameter {name!r} has inverted bounds {bounds!r}")

		self.name = name
		self.bounds = bounds
		self._value: T = value
		self._listeners: typing.List[CallbackType] = []


	@property
	def value (self) -> T:

		"""The last written value."""

		return self._value


	@value.setter
	def value (self, value: T) -> None:

		self._value = value
		self._publish()


	def subscribe (self, callback: CallbackType) -> None:

		"""
		Call ``callback`` with the current value, then register it for every future write.
		"""

		callback(self._value)
		self._listeners.append(callback)


	def _publish (self) -> None:

		for callback in self._listeners:
			callback(self._value)


	def __repr__ (self) -> str:

		return f"Parameter({self.name!r}, {self._value!r})"


def generic_parameter (name: str, value: T) -> Parameter[T]:

	"""Create an unbounded parameter of any value type."""

	return Parameter(name, value)


def trigger (name: str, value: bool = False) -> Parameter[bool]:

	"""
	Create a trigger: a boolean parameter used as a one-shot signal.

	The reader that acts on a trigger is expected to set it back to ``False``.
	"""

	return Parameter(name, value)


def parameter (name: str, bounds: Bounds, value: float) -> Parameter[float]:

	"""Create a numeric parameter with ``(min, max)`` bounds."""

	return Parameter(name, value, bounds)
