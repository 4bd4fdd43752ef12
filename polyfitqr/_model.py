"""
Shared statistics and reporting for fitted models.
"""

import numpy as np
import pandas as pd
from typing import List, Optional

from ._backends import LeastSquaresResult


def resolve_column(values, data: Optional[pd.DataFrame], role: str):
    """
    Resolve an argument that is either a column name or array-like.

    Returns (values, name).
    """
    if isinstance(values, str):
        if data is None:
            raise ValueError(f"Must provide data when {role} is a string")
        return data[values].values, values
    return values, role


class FittedModel:
    """
    Base class for least-squares fits with an R-style report.

    Subclasses set ``var_names``, ``response``, ``response_name`` and
    ``backend`` and then call ``_compute_statistics`` with the backend
    result.
    """

    title = "LEAST-SQUARES FIT"
    var_names: List[str]
    response: np.ndarray
    response_name: str

    def _compute_statistics(self, result: LeastSquaresResult):
        """Compute residual standard error and R-squared."""
        self._backend_result = result

        self.coefficients = result.coef
        self.fitted_values = result.fitted_values
        self.residuals = result.residuals
        self.rank = result.rank
        self.df_residual = result.df_residual
        self.n_obs = len(self.response)

        rss = float(np.sum(self.residuals**2))
        self.rss = rss
        self.sigma = np.sqrt(rss / self.df_residual) if self.df_residual > 0 else np.nan

        tss = float(np.sum((self.response - np.mean(self.response))**2))
        self.r_squared = 1 - (rss / tss) if tss > 0 else 0.0

        n = self.n_obs
        if self.df_residual > 0:
            self.adj_r_squared = 1 - (1 - self.r_squared) * (n - 1) / self.df_residual
        else:
            self.adj_r_squared = np.nan

    @property
    def coef(self) -> pd.Series:
        """Named coefficients (pandas Series)."""
        return pd.Series(self.coefficients, index=self.var_names)

    def to_frame(self) -> pd.DataFrame:
        """Observed, fitted and residual values per sample."""
        return pd.DataFrame({
            self.response_name: self.response,
            'fitted': self.fitted_values,
            'residual': self.residuals,
        })

    def summary(self):
        """Print summary of fit results."""
        print()
        print("="*72)
        print(self.title)
        print("="*72)
        print()

        print(f"Dependent variable: {self.response_name}")
        print(f"Number of observations: {self.n_obs}")
        print(f"Degrees of freedom: {self.df_residual} (residual), {self.rank - 1} (model)")
        print()

        print("Residuals:")
        residual_summary = pd.Series(self.residuals).describe()
        print(f"  Min:    {residual_summary['min']:>12.6g}")
        print(f"  Median: {residual_summary['50%']:>12.6g}")
        print(f"  Max:    {residual_summary['max']:>12.6g}")
        print()

        print("Coefficients:")
        print("-"*72)
        print(f"{'Term':<20} {'Estimate':>16}")
        print("-"*72)
        for name, value in zip(self.var_names, self.coefficients):
            print(f"{name:<20} {value:>16.8g}")
        print("-"*72)
        print()

        print(f"Residual standard error: {self.sigma:.6g} on {self.df_residual} degrees of freedom")
        print(f"Multiple R-squared:      {self.r_squared:.6f}")
        print(f"Adjusted R-squared:      {self.adj_r_squared:.6f}")
        print()
        print(f"Backend: {self.backend.name}")
        print("="*72)
        print()

