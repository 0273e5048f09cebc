from .response_plot import plot_eq_result

__all__ = ["plot_eq_result"]
