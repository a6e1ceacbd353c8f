# sim/leaf_state.py
"""
Session state for the leaf gas-exchange simulator.

`SimulationState` is the single snapshot read by the telemetry, chart and
visual collaborators. It is immutable; every control event produces a new
instance built from a full evaluation of the inputs.
"""

from dataclasses import dataclass, asdict
from enum import Enum
from typing import NamedTuple

from sim.leaf_physics import evaluate


class GravityMode(str, Enum):
    EARTH_1G = 'EARTH_1G'
    MICRO_UG = 'MICRO_UG'

    @classmethod
    def parse(cls, value):
        """Accept a member or its name; raises ValueError for anything else."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            raise ValueError(f"Unknown gravity mode: {value!r}") from None


class LightColor(Enum):
    """Grow-light colours as (display name, hex value)."""
    WHITE = ('White', '#ffffff')
    RED = ('Red', '#ff0000')
    BLUE = ('Blue', '#0000ff')
    GREEN = ('Green', '#00ff00')
    FAR_RED = ('Far-Red', '#8b0000')

    def __init__(self, label, hex_value):
        self.label = label
        self.hex_value = hex_value

    @classmethod
    def lookup(cls, value):
        """Resolve a member, member name, display name or hex value. Unknown -> WHITE."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        for color in cls:
            if key in (color.name.lower(), color.label.lower(), color.hex_value):
                return color
        return cls.WHITE


class EvaluationInputs(NamedTuple):
    """Complete input tuple, in the evaluator's argument order."""
    gravity: float
    velocity: float
    base_thickness: float
    co2: float
    o2: float
    ambient_temp: float
    light_intensity: float
    light_color: LightColor


@dataclass(frozen=True)
class SimulationState:
    # inputs
    gravity_mode: GravityMode
    gravity_factor: float
    air_velocity: float
    base_thickness: float
    ambient_co2: float
    ambient_o2: float
    ambient_temperature: float
    light_intensity: float
    light_color: LightColor
    # derived
    boundary_layer_thickness: float
    co2_flux: float
    o2_flux: float
    temperature: float
    stress_level: float
    photosynthetic_efficiency: float

    @classmethod
    def from_evaluation(cls, mode, inputs, derived):
        return cls(
            gravity_mode=GravityMode.parse(mode),
            gravity_factor=inputs.gravity,
            air_velocity=inputs.velocity,
            base_thickness=inputs.base_thickness,
            ambient_co2=inputs.co2,
            ambient_o2=inputs.o2,
            ambient_temperature=inputs.ambient_temp,
            light_intensity=inputs.light_intensity,
            light_color=LightColor.lookup(inputs.light_color),
            boundary_layer_thickness=derived.boundary_layer_thickness,
            co2_flux=derived.co2_flux,
            o2_flux=derived.o2_flux,
            temperature=derived.temperature,
            stress_level=derived.stress_level,
            photosynthetic_efficiency=derived.photosynthetic_efficiency,
        )

    def inputs(self) -> EvaluationInputs:
        return EvaluationInputs(
            gravity=self.gravity_factor,
            velocity=self.air_velocity,
            base_thickness=self.base_thickness,
            co2=self.ambient_co2,
            o2=self.ambient_o2,
            ambient_temp=self.ambient_temperature,
            light_intensity=self.light_intensity,
            light_color=self.light_color,
        )

    def to_dict(self):
        d = asdict(self)
        d['gravity_mode'] = self.gravity_mode.value
        d['light_color'] = self.light_color.label
        return d


def build_state(mode, inputs, light_aware=True):
    """Evaluate `inputs` and wrap the result as a full snapshot tagged with `mode`."""
    derived = evaluate(*inputs, light_aware=light_aware)
    return SimulationState.from_evaluation(mode, inputs, derived)


INITIAL_INPUTS = EvaluationInputs(
    gravity=1.0,
    velocity=1.0,
    base_thickness=0.4,
    co2=400.0,
    o2=21.0,
    ambient_temp=22.0,
    light_intensity=0.0,
    light_color=LightColor.WHITE,
)

INITIAL_STATE = build_state(GravityMode.EARTH_1G, INITIAL_INPUTS)
