"""
The module contains **functions for plotting** the convergence
of optimization runs recorded with `numopt.History`.

Example
-------
>>> import matplotlib.pyplot as plt
>>> from scipy.optimize import rosen
>>> from numopt import History, NelderMead, Problem, Settings, minimize
>>> history = History()
>>> result = minimize(Problem(rosen), x0=[-1, 2], method=NelderMead(),
...                   settings=Settings(recorder=history))
>>> plot_convergence(history)
>>> plt.show()
"""
from itertools import cycle
from typing import Literal, Optional

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.figure import Figure

from ._record import History

_MARKER_SEQUENCE = 'osxdvP^'


def plot_convergence(
        *histories: History | tuple[str, History],
        true_minimum: Optional[float] = None,
        xscale: Literal['linear', 'log'] = 'linear',
        yscale: Literal['linear', 'log'] = 'linear',
) -> Figure:
    """
    Plot one or several convergence traces,
    showing how the best objective value evolved during the optimization process.

    Parameters
    ----------
    *histories : History or tuple[str, History]
        The recorded run(s) for which to plot the convergence trace.
        In tuple format, the string is used as the legend label
        for that run.

    true_minimum : float, optional
        The true minimum *value* of the objective function, if known.

    xscale, yscale : {'linear', 'log'}, optional, default='linear'
        The scales for the axes.

    Returns
    -------
    fig : matplotlib.figure.Figure
        The matplotlib figure.
    """
    assert histories, histories

    fig = plt.figure()
    _watermark(fig)
    ax = plt.gca()
    ax.set_title("Convergence")
    ax.set_xlabel("Number of function evaluations $n$")
    ax.set_ylabel(r"$\min\ f(x)$ after $n$ evaluations")
    ax.grid()
    _set_xscale_yscale(ax, xscale, yscale)
    fig.set_layout_engine('tight')

    MARKER = cycle(_MARKER_SEQUENCE)

    name = None
    for i, history in enumerate(histories, 1):
        name = f'#{i}' if len(histories) > 1 else None
        if isinstance(history, tuple):
            name, history = history
        history = _check_history(history)

        mins = np.minimum.accumulate(history.funv)
        ax.plot(range(1, history.nfev + 1), mins,
                label=name, marker=next(MARKER), markevery=(.05 + .05*i, .2),
                linestyle='--', alpha=.7, markersize=6, lw=2)

    if true_minimum is not None:
        ax.axhline(true_minimum, color="k", linestyle='--', lw=1, label="True minimum")

    if true_minimum is not None or name is not None:
        ax.legend(loc="upper right")

    return fig


def _set_xscale_yscale(ax, xscale, yscale):
    kw = {}
    if xscale in ('log', 'symlog'):
        xscale = 'symlog'
        kw = {'linthresh': 1}
    ax.set_xscale(xscale, **kw)
    kw = {}
    if yscale in ('log', 'symlog'):
        yscale = 'symlog'
        kw = {'linthresh': 1}
    ax.set_yscale(yscale, **kw)


def _check_history(history):
    for attr in ('funv', 'nfev'):
        if not hasattr(history, attr):
            raise TypeError(
                'Only a History recorder from this package, or an object with '
                f'the same API, can be plotted. The passed object was: {history!r}')
    if not history.nfev:
        raise ValueError('History has no recorded function evaluations')
    return history


def _watermark(fig: plt.Figure):
    plt.rcParams['svg.fonttype'] = 'none'
    fig.text(.01, .01, f'Created with {__package__}', alpha=.01, gid='watermark')
