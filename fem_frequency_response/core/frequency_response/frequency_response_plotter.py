"""
Frequency Response Plotter

Bode plots of the structural transfer functions.

Plot Types Generated
--------------------
1. **Bode Plot**: magnitude |T(jω)| [dB] and phase ∠T(jω) [deg] of selected
   output/input channel pairs, overlaid on shared semi-log axes
2. **Magnitude Map**: largest singular value of T(jω) vs frequency, a
   direction-independent view of the MIMO gain

Figure Styling
--------------
- Axis labels: bold
- Grid: alpha=0.3, linestyle=':'
- DPI: 300 for saved figures
- Natural frequencies of the model can be marked with vertical lines

The plotter never calls ``plt.show()`` on its own: figures are saved with
:meth:`FrequencyResponsePlotter.save_all_figures` so that it runs with the
non-interactive Agg backend.
"""

import numpy as np
import matplotlib.pyplot as plt
import matplotlib
from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

from .result_aggregator import FrequencyResponse


class PlotStyle(Enum):
    """Plot style presets."""
    PUBLICATION = auto()
    PRESENTATION = auto()
    SCREEN = auto()


@dataclass
class PlotConfig:
    """
    Configuration for frequency response plots.

    Attributes
    ----------
    style : PlotStyle
        Visual style preset
    figsize : Tuple[float, float]
        Figure size [inches]
    dpi : int
        Output resolution
    save_format : str
        Output format ('png', 'pdf', 'svg')
    output_dir : Path
        Directory for saved figures
    unwrap_phase : bool
        Unwrap the phase along frequency
    max_pairs : int
        Maximum number of channel pairs drawn on one Bode plot
    verbose : bool
        Print saved file notices
    """
    style: PlotStyle = PlotStyle.PUBLICATION
    figsize: Tuple[float, float] = (10, 8)
    dpi: int = 300
    save_format: str = 'png'
    output_dir: Path = field(default_factory=lambda: Path('figures_bode'))
    unwrap_phase: bool = True
    max_pairs: int = 8
    verbose: bool = True


ChannelPair = Tuple[Union[int, str], Union[int, str]]


class FrequencyResponsePlotter:
    """
    Bode plot generation for FrequencyResponse results.

    Example Usage
    -------------
    >>> plotter = FrequencyResponsePlotter(PlotConfig(output_dir=Path('figs')))
    >>> plotter.plot_bode(response, natural_frequencies_hz=model.eigen_frequencies_hz)
    >>> plotter.plot_singular_values(response)
    >>> plotter.save_all_figures()

    Parameters
    ----------
    config : PlotConfig
        Plotting configuration
    """

    COLORS = ['#1f77b4', '#ff7f0e', '#2ca02c', '#d62728',
              '#9467bd', '#8c564b', '#e377c2', '#7f7f7f']

    def __init__(self, config: Optional[PlotConfig] = None):
        self.config = config or PlotConfig()
        self._figures: Dict[str, plt.Figure] = {}
        self._configure_matplotlib()

    def _configure_matplotlib(self) -> None:
        matplotlib.rcParams['mathtext.fontset'] = 'stix'
        if self.config.style == PlotStyle.PUBLICATION:
            matplotlib.rcParams['font.size'] = 12
            matplotlib.rcParams['axes.labelsize'] = 14
            matplotlib.rcParams['axes.titlesize'] = 14
            matplotlib.rcParams['legend.fontsize'] = 10
            matplotlib.rcParams['lines.linewidth'] = 2.0
        elif self.config.style == PlotStyle.PRESENTATION:
            matplotlib.rcParams['font.size'] = 14
            matplotlib.rcParams['axes.labelsize'] = 16
            matplotlib.rcParams['axes.titlesize'] = 18
            matplotlib.rcParams['legend.fontsize'] = 12
            matplotlib.rcParams['lines.linewidth'] = 2.5
        else:
            matplotlib.rcParams['font.size'] = 10
            matplotlib.rcParams['lines.linewidth'] = 1.5

    def default_pairs(self, response: FrequencyResponse) -> List[ChannelPair]:
        """Diagonal pairs first, then the remaining pairs, up to ``max_pairs``."""
        n_out, n_in = response.shape
        diagonal = [(i, i) for i in range(min(n_out, n_in))]
        rest = [(o, i) for o in range(n_out) for i in range(n_in) if o != i]
        return (diagonal + rest)[:self.config.max_pairs]

    def plot_bode(
        self,
        response: FrequencyResponse,
        pairs: Optional[Sequence[ChannelPair]] = None,
        natural_frequencies_hz: Optional[np.ndarray] = None,
        title: Optional[str] = None,
        name: str = 'bode',
        save: bool = False
    ) -> plt.Figure:
        """
        Generate a Bode plot (magnitude and phase).

        Parameters
        ----------
        response : FrequencyResponse
            Evaluated frequency response
        pairs : sequence of (output, input), optional
            Channel pairs, by index or label (default: :meth:`default_pairs`)
        natural_frequencies_hz : np.ndarray, optional
            Natural frequencies marked on the magnitude axis
        title : str, optional
            Custom figure title
        name : str
            Figure name (file stem)
        save : bool
            Save figure to disk

        Returns
        -------
        plt.Figure
            Generated figure
        """
        pairs = list(pairs) if pairs is not None else self.default_pairs(response)
        f = response.frequencies_hz

        fig, (ax_mag, ax_phase) = plt.subplots(
            2, 1,
            figsize=self.config.figsize,
            sharex=True,
            constrained_layout=True
        )

        for idx, (out_ch, in_ch) in enumerate(pairs):
            tf = response.transfer(out_ch, in_ch)
            out_label = out_ch if isinstance(out_ch, str) else response.output_labels[out_ch]
            in_label = in_ch if isinstance(in_ch, str) else response.input_labels[in_ch]
            color = self.COLORS[idx % len(self.COLORS)]
            phase = np.angle(tf)
            if self.config.unwrap_phase:
                phase = np.unwrap(phase)

            ax_mag.semilogx(f, 20 * np.log10(np.abs(tf) + 1e-300), color=color,
                            label=f'{in_label} → {out_label}', alpha=0.9)
            ax_phase.semilogx(f, np.rad2deg(phase), color=color, alpha=0.9)

        if natural_frequencies_hz is not None:
            for fn in np.asarray(natural_frequencies_hz):
                if f[0] <= fn <= f[-1]:
                    ax_mag.axvline(fn, color='gray', linestyle=':', alpha=0.4, linewidth=1.0)

        ax_mag.set_ylabel('Magnitude [dB]', fontweight='bold')
        ax_mag.set_title(title or f'{response.metadata.get("fem", "FEM")} Frequency Response',
                         fontweight='bold')
        ax_mag.legend(loc='lower left', framealpha=0.95)
        ax_mag.grid(True, which='both', alpha=0.3, linestyle=':')
        if len(f) > 1:
            ax_mag.set_xlim([f.min(), f.max()])

        ax_phase.set_xlabel('Frequency [Hz]', fontweight='bold')
        ax_phase.set_ylabel('Phase [degrees]', fontweight='bold')
        ax_phase.grid(True, which='both', alpha=0.3, linestyle=':')

        self._figures[name] = fig
        if save:
            self._save_figure(fig, name)
        return fig

    def plot_singular_values(
        self,
        response: FrequencyResponse,
        title: Optional[str] = None,
        name: str = 'singular_values',
        save: bool = False
    ) -> plt.Figure:
        """Plot the largest and smallest singular value of T(jω) [dB]."""
        sv = np.linalg.svd(response.response, compute_uv=False)
        f = response.frequencies_hz

        fig, ax = plt.subplots(figsize=self.config.figsize, constrained_layout=True)
        ax.semilogx(f, 20 * np.log10(sv[:, 0] + 1e-300), color=self.COLORS[0],
                    label=r'$\bar{\sigma}$')
        if sv.shape[1] > 1:
            ax.semilogx(f, 20 * np.log10(sv[:, -1] + 1e-300), color=self.COLORS[1],
                        linestyle='--', label=r'$\underline{\sigma}$')
        ax.set_xlabel('Frequency [Hz]', fontweight='bold')
        ax.set_ylabel('Singular value [dB]', fontweight='bold')
        ax.set_title(title or 'Transfer Matrix Singular Values', fontweight='bold')
        ax.legend(loc='lower left', framealpha=0.95)
        ax.grid(True, which='both', alpha=0.3, linestyle=':')

        self._figures[name] = fig
        if save:
            self._save_figure(fig, name)
        return fig

    def _save_figure(self, fig: plt.Figure, name: str) -> Path:
        self.config.output_dir.mkdir(parents=True, exist_ok=True)
        filepath = self.config.output_dir / f'{name}.{self.config.save_format}'
        fig.savefig(filepath, dpi=self.config.dpi, bbox_inches='tight',
                    facecolor='white', edgecolor='none')
        if self.config.verbose:
            print(f"  [SAVED] {filepath}")
        return filepath

    def save_all_figures(self) -> List[Path]:
        """Save all generated figures to disk."""
        if self.config.verbose:
            print(f"\nSaving {len(self._figures)} figures to {self.config.output_dir}/")
        paths = [self._save_figure(fig, name) for name, fig in self._figures.items()]
        if self.config.verbose:
            print(f"[COMPLETE] All figures saved ({self.config.dpi} DPI, "
                  f"{self.config.save_format.upper()})")
        return paths

    def close(self) -> None:
        """Close all figures."""
        for fig in self._figures.values():
            plt.close(fig)
        self._figures.clear()

    @property
    def figures(self) -> Dict[str, plt.Figure]:
        return self._figures
