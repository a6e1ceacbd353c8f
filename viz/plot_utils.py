# viz/plot_utils.py
"""
Utility plotting functions for the leaf gas-exchange simulator.

Provides:
- the gas-exchange chart (sampled CO2 intake / O2 output history)
- parameter sweep plots (thickness, flux, temperature, stress, efficiency)

Note: uses matplotlib and expects numeric data in sequences or a pandas DataFrame.
"""

import os
import matplotlib.pyplot as plt

CO2_COLOR = '#00ff9d'
O2_COLOR = '#00f0ff'


def plot_flux_history(series, out_path=None, title=None):
    """
    Plot the flux sensor history.

    series: dict of lists, e.g. {'time': [...], 'co2': [...], 'o2': [...]}
    """
    time = series.get('time', list(range(len(series.get('co2', [])))))
    co2 = series.get('co2', [])
    o2 = series.get('o2', [])

    fig, ax = plt.subplots(figsize=(8, 3))
    ax.fill_between(time, co2, alpha=0.3, color=CO2_COLOR)
    ax.plot(time, co2, label='CO2 IN', color=CO2_COLOR, linewidth=2)
    ax.fill_between(time, o2, alpha=0.3, color=O2_COLOR)
    ax.plot(time, o2, label='O2 OUT', color=O2_COLOR, linewidth=2)
    ax.set_xlabel('Time (s)')
    ax.set_ylabel('Gas exchange rate')
    ax.grid(axis='y', linestyle='--', alpha=0.4)
    ax.legend(loc='upper right')
    if title:
        ax.set_title(title)

    if out_path:
        fig.savefig(out_path, dpi=150)
        plt.close(fig)
        print(f'[viz] saved flux chart to {out_path}')
    else:
        plt.show()
    return out_path


def plot_sweep(df, param, out_path=None, title=None):
    """
    Plot a 1-D parameter sweep.

    df: DataFrame with a column named `param` plus the state columns
        produced by `SimulationState.to_dict()`.
    """
    x = df[param]
    fig, axes = plt.subplots(2, 2, figsize=(12, 8), sharex=True)

    ax = axes[0][0]
    ax.plot(x, df['boundary_layer_thickness'], color='tab:cyan', linewidth=2)
    ax.set_ylabel('Boundary layer (mm)')

    ax = axes[0][1]
    ax.plot(x, df['co2_flux'], label='CO2 in', color=CO2_COLOR)
    ax.plot(x, df['o2_flux'], label='O2 out', color=O2_COLOR)
    ax.set_ylabel('Flux')
    ax.legend(loc='best')

    ax = axes[1][0]
    ax.plot(x, df['temperature'], label='Leaf', color='tab:red')
    ax.plot(x, df['ambient_temperature'], label='Ambient', color='tab:gray', linestyle='--')
    ax.set_ylabel('Temp (°C)')
    ax.set_xlabel(param)
    ax.legend(loc='best')

    ax = axes[1][1]
    ax.plot(x, df['stress_level'], label='Stress', color='tab:orange')
    ax.plot(x, df['photosynthetic_efficiency'], label='Efficiency', color='tab:green')
    ax.set_ylim(0, 100)
    ax.set_ylabel('0..100')
    ax.set_xlabel(param)
    ax.legend(loc='best')

    fig.suptitle(title or f'Sweep over {param}')
    fig.tight_layout()

    if out_path:
        os.makedirs(os.path.dirname(out_path) or '.', exist_ok=True)
        fig.savefig(out_path, dpi=150)
        plt.close(fig)
        print(f'[viz] saved sweep plot to {out_path}')
    else:
        plt.show()
    return out_path
