from exbn.display.plots import plot_marginals, plots_enabled

__all__ = ["plot_marginals", "plots_enabled"]
