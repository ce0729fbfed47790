"""Recording of time series and their display with matplotlib."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

import numpy as np
from numpy.typing import ArrayLike

from quadctrl.timing import get_system_time

__all__ = ["Curve", "Plot", "PyPlot"]


@dataclass
class Curve:
    """One recorded series of ``(x, y)`` points."""

    x: list[float] = field(default_factory=list)
    y: list[float] = field(default_factory=list)

    def append(self, x: float, y: float) -> None:
        self.x.append(float(x))
        self.y.append(float(y))

    def points_after(self, x_rough: float, point_num: int = 1) -> list[tuple[float, float]]:
        """Return up to ``point_num`` points starting at the first x above ``x_rough``."""
        for i, xi in enumerate(self.x):
            if x_rough < xi:
                return list(zip(self.x[i:i + point_num], self.y[i:i + point_num]))
        return []


class Plot:
    """A named group of curves drawn in one figure."""

    def __init__(self, name: str, curve_count: int, labels: Iterable[str] | None = None) -> None:
        labels = [str(i + 1) for i in range(curve_count)] if labels is None else list(labels)
        if len(labels) < curve_count:
            raise ValueError(
                f"Plot {name} needs {curve_count} labels, got {len(labels)}"
            )
        self.name = name
        self.curve_count = curve_count
        self.labels = labels[:curve_count]
        self.curves = [Curve() for _ in range(curve_count)]
        self._curve_ids: dict[str, int] = {}
        for i, label in enumerate(self.labels):
            self._curve_ids.setdefault(label, i)

    def curve(self, curve_name: str) -> Curve:
        """Return the curve with label ``curve_name``."""
        try:
            return self.curves[self._curve_ids[curve_name]]
        except KeyError:
            raise KeyError(f"Plot {self.name} has no curve {curve_name}") from None

    def elapsed(self, start_time: int) -> float:
        """Seconds passed since ``start_time`` (microseconds)."""
        return (get_system_time() - start_time) * 1e-6

    def points_after(
        self, curve_name: str, x_rough: float, point_num: int = 1
    ) -> list[tuple[float, float]]:
        return self.curve(curve_name).points_after(x_rough, point_num)


class PyPlot:
    """Collection of plots filled frame by frame and shown on demand."""

    def __init__(self) -> None:
        self._plots: dict[str, Plot] = {}
        self._start_time: int | None = None

    @property
    def plots(self) -> dict[str, Plot]:
        return dict(self._plots)

    def _plot(self, plot_name: str) -> Plot:
        try:
            return self._plots[plot_name]
        except KeyError:
            raise KeyError(f"Plot {plot_name} does not exist") from None

    def add_plot(
        self, plot_name: str, curve_count: int, labels: Iterable[str] | None = None
    ) -> Plot:
        """Create a plot; labels default to ``"1"``, ``"2"``, ..."""
        if plot_name in self._plots:
            raise ValueError(f"Already has same Plot: {plot_name}")
        plot = Plot(plot_name, curve_count, labels)
        self._plots[plot_name] = plot
        return plot

    def add_frame(
        self, plot_name: str, values: float | ArrayLike, x: float | None = None
    ) -> None:
        """Append one frame.

        A scalar goes to the first curve; a sequence gives one value per curve.
        Without ``x`` the seconds since the first such frame are used.
        """
        plot = self._plot(plot_name)
        if x is None:
            if self._start_time is None:
                self._start_time = get_system_time()
            x = plot.elapsed(self._start_time)
        if np.ndim(values) == 0:
            plot.curves[0].append(x, float(values))
            return
        flat = np.asarray(values, dtype=float).reshape(-1)
        if flat.size < plot.curve_count:
            raise ValueError(
                f"Plot {plot_name} needs {plot.curve_count} values, got {flat.size}"
            )
        for curve, value in zip(plot.curves, flat):
            curve.append(x, value)

    def print_xy(
        self,
        plot_name: str,
        curve_name: str,
        x_rough: float,
        point_num: int = 1,
    ) -> list[tuple[float, float]]:
        """Print, and return, the points of a curve just after ``x_rough``."""
        points = self._plot(plot_name).points_after(curve_name, x_rough, point_num)
        print(f"[DEBUG] Plot: {plot_name}, Curve: {curve_name}")
        for px, py in points:
            print(f"  X: {px}, Y: {py}")
        return points

    def _draw(self, plot: Plot):
        import matplotlib.pyplot as plt

        fig = plt.figure()
        plt.title(plot.name)
        for label, curve in zip(plot.labels, plot.curves):
            plt.plot(curve.x, curve.y, label=label)
        plt.legend()
        return fig

    def show_plot(self, plot_names: str | Iterable[str]) -> list:
        """Draw the named plots, each in its own figure, and show them."""
        import matplotlib.pyplot as plt

        names = [plot_names] if isinstance(plot_names, str) else list(plot_names)
        plots = [self._plot(name) for name in names]
        figures = [self._draw(plot) for plot in plots]
        plt.show()
        return figures

    def show_plot_all(self) -> list:
        """Draw every plot in its own figure and show them."""
        return self.show_plot(list(self._plots))