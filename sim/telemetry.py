# sim/telemetry.py
"""
Telemetry readout for a simulation snapshot: gauges, warnings and the
one-line status report.
"""

from dataclasses import dataclass
from typing import List, Optional

CRITICAL_STRESS = 50.0
HEAT_TRAP_NOTE_MARGIN = 2.0      # degrees C above ambient
LOW_GRAVITY = 0.2
CRITICAL_LAYER = 1.5             # mm
LEAF_TEMP_ALERT = 30.0

STATUS_CRITICAL = "CRITICAL: HYPOXIA IMMINENT. Thick boundary layer inhibiting gas exchange."
STATUS_NOMINAL = "NOMINAL: Photosynthetic rates stable. Adequate diffusion."


@dataclass
class Gauge:
    name: str
    value: float
    max: float
    unit: str
    alert: bool = False

    @property
    def fraction(self):
        return min(self.value / self.max, 1.0)


@dataclass
class TelemetryReport:
    critical: bool
    status: str
    gauges: List[Gauge]
    heat_trap_excess: Optional[float]
    resistance_critical: bool

    def lines(self):
        out = []
        for g in self.gauges:
            flag = ' !' if g.alert else ''
            out.append(f"{g.name:<15} {g.value:6.1f} {g.unit:<3} [{g.fraction:4.0%}]{flag}")
        if self.heat_trap_excess is not None:
            out.append(f"+{self.heat_trap_excess:.1f}°C Heat Trap Effect")
        if self.resistance_critical:
            out.append("Diffusional resistance CRITICAL")
        out.append(self.status)
        return out


def build_report(state):
    critical = state.stress_level > CRITICAL_STRESS
    gauges = [
        Gauge('Boundary Layer', state.boundary_layer_thickness, 4.0, 'mm'),
        Gauge('Leaf Temp', state.temperature, 40.0, '°C', alert=state.temperature > LEAF_TEMP_ALERT),
        Gauge('Ambient Temp', state.ambient_temperature, 40.0, '°C'),
    ]
    excess = state.temperature - state.ambient_temperature
    heat_trap_excess = excess if excess > HEAT_TRAP_NOTE_MARGIN else None
    resistance_critical = (state.gravity_factor < LOW_GRAVITY
                           and state.boundary_layer_thickness > CRITICAL_LAYER)
    return TelemetryReport(
        critical=critical,
        status=STATUS_CRITICAL if critical else STATUS_NOMINAL,
        gauges=gauges,
        heat_trap_excess=heat_trap_excess,
        resistance_critical=resistance_critical,
    )
