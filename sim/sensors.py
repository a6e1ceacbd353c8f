# sim/sensors.py
"""
FluxSensor
----------
Simulates the gas-exchange readout that feeds the flux chart: CO2 intake and
O2 output sampled at a fixed interval with uniform sensor noise, kept in a
short rolling history.

The sensor only reads the current `SimulationState`; it never writes it.
"""

import random
from collections import deque


class FluxSensor:
    def __init__(self, cfg=None, seed=None):
        cfg = cfg or {}
        # full-width of the uniform noise band
        self.noise_co2 = cfg.get('noise_co2', 4.0)
        self.noise_o2 = cfg.get('noise_o2', 3.0)
        self.interval_s = cfg.get('interval_s', 0.5)   # 2 Hz
        self.capacity = cfg.get('history_len', 30)
        # placeholder points shown before the first real sample
        n_seed = cfg.get('seed_points', 20)
        seed_co2 = cfg.get('seed_co2', 50.0)
        seed_o2 = cfg.get('seed_o2', 45.0)

        # without a seed, draw from the module RNG seeded by load_config
        self.rng = random.Random(seed) if seed is not None else random
        self.history = deque(maxlen=self.capacity)
        for i in range(n_seed):
            self.history.append({'time': float(i), 'co2': seed_co2, 'o2': seed_o2})

    def _noise(self, width):
        return (self.rng.random() - 0.5) * width

    def sample(self, state, t):
        """Take one reading of `state` at time `t` (seconds) and append it."""
        point = {
            'time': float(t),
            'co2': max(0.0, state.co2_flux + self._noise(self.noise_co2)),
            'o2': max(0.0, state.o2_flux + self._noise(self.noise_o2)),
        }
        self.history.append(point)
        return point

    def series(self):
        """History as parallel lists, oldest first."""
        return {
            'time': [p['time'] for p in self.history],
            'co2': [p['co2'] for p in self.history],
            'o2': [p['o2'] for p in self.history],
        }
