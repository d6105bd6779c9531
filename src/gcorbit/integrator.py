'''Guiding-center orbit package
Integrator class definition

Event-capable ODE integration over a fixed output grid. The tracers only
rely on the integrate() signature, so any object providing it can be
injected in place of ScipyIntegrator.'''

import numpy as np
from dataclasses import dataclass
from typing import Callable, Optional
from scipy.integrate import RK23, RK45, DOP853, Radau, BDF, LSODA, OdeSolution
from .config import config


@dataclass(frozen=True)
class IntegrationResult:
    """
    Output of an integration over a time grid.

    Attributes
    ----------
    t : np.ndarray
        Grid times that were reached, shape (n,)
    y : np.ndarray
        States at those times, shape (n, n_state)
    solution : OdeSolution or None
        Dense output covering [t[0], t[-1]], None if no step was taken
    halted : bool
        True if the step callback requested early termination
    """
    t: np.ndarray
    y: np.ndarray
    solution: Optional[OdeSolution]
    halted: bool


class ScipyIntegrator:
    """
    Stepping integrator built on scipy's OdeSolver classes.

    The solver advances with its own adaptive steps; whenever a step passes
    one or more points of the output grid, the states there are obtained from
    the step's dense output and handed to the callback, in order. The
    callback returns True to continue and False to halt; the state that
    triggered the halt is kept as the last sample.

    Parameters
    ----------
    method : str, optional
        One of 'RK23', 'RK45', 'DOP853', 'Radau', 'BDF', 'LSODA'.
        Default: config.INTEGRATION_METHOD
    """
    _METHODS = {
        'RK23': RK23,
        'RK45': RK45,
        'DOP853': DOP853,
        'Radau': Radau,
        'BDF': BDF,
        'LSODA': LSODA,
    }

    def __init__(self, method: Optional[str] = None):
        if method is None:
            method = config.INTEGRATION_METHOD
        self._method = self._parse_method(method)

    @property
    def method(self) -> str:
        return self._method

    def integrate(self, fun: Callable, y0, t, rtol: float, atol: float,
                  callback: Optional[Callable] = None) -> IntegrationResult:
        """
        Integrate dy/dt = fun(t, y) from y0 over the time grid t.

        Parameters
        ----------
        fun : callable
            Right-hand side fun(t, y) -> array
        y0 : array_like
            Initial state at t[0]
        t : array_like
            Strictly increasing output times
        rtol, atol : float
            Solver tolerances
        callback : callable, optional
            callback(y) -> bool, called once per output time after t[0]

        Raises
        ------
        ValueError
            If the time grid is invalid
        RuntimeError
            If the solver fails
        """
        t = np.asarray(t, dtype=float)
        y0 = np.asarray(y0, dtype=float)
        if t.ndim != 1 or t.size < 1:
            raise ValueError("Time grid must be a non-empty 1-D array")
        if t.size > 1 and np.any(np.diff(t) <= 0):
            raise ValueError("Time grid must be strictly increasing")
        if not np.all(np.isfinite(y0)):
            raise ValueError(f"Initial state contains NaN or Inf values: {y0}")

        ts = [t[0]]
        ys = [y0.copy()]
        if t.size == 1:
            return IntegrationResult(np.array(ts), np.array(ys), None, False)

        solver = self._METHODS[self._method](fun, t[0], y0, t[-1],
                                             rtol=rtol, atol=atol)
        t_dense = [t[0]]
        interpolants = []
        halted = False
        k = 1
        while k < t.size and not halted:
            message = solver.step()
            if solver.status == 'failed':
                raise RuntimeError(
                    f"Integration failed at t = {solver.t:.6e}: {message}"
                )
            t_dense.append(solver.t)
            sol = solver.dense_output()
            interpolants.append(sol)

            while k < t.size and t[k] <= solver.t:
                yk = sol(t[k])
                ts.append(t[k])
                ys.append(yk)
                k += 1
                if callback is not None and not callback(yk):
                    halted = True
                    break

        return IntegrationResult(np.array(ts), np.array(ys),
                                 OdeSolution(t_dense, interpolants), halted)

    @classmethod
    def _parse_method(cls, method):
        if isinstance(method, str) and method in cls._METHODS:
            return method
        raise ValueError(f"Unknown integration method '{method}'. "
                         f"Use: {list(cls._METHODS.keys())}")

    def __repr__(self):
        return f"ScipyIntegrator(method='{self._method}')"
