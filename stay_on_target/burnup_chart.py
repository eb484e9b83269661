"""Static burnup chart for a forecast."""

import logging
import os
from typing import Optional, Tuple

import matplotlib.pyplot as plt
import pandas as pd

from .burnup_data import (
    PROJECTED_RESOLVED_COLUMN,
    PROJECTED_SCOPE_COLUMN,
    RESOLVED_COLUMN,
    SCOPE_COLUMN,
    forecast_to_dataframe,
)
from .config.exceptions import ChartGenerationError
from .utils import set_chart_style

logger = logging.getLogger(__name__)

SERIES_STYLES = {
    SCOPE_COLUMN: {"color": "tab:blue", "linestyle": "-"},
    RESOLVED_COLUMN: {"color": "tab:green", "linestyle": "-"},
    PROJECTED_SCOPE_COLUMN: {"color": "tab:blue", "linestyle": "--"},
    PROJECTED_RESOLVED_COLUMN: {"color": "tab:green", "linestyle": "--"},
}


class BurnupChartWriter:
    """Draws actual and projected scope and resolved work, and saves the
    figure to a file."""

    def __init__(
        self,
        title: Optional[str] = None,
        date_format: str = "%d/%m/%Y",
        figure_size: Tuple[float, float] = (12, 8),
    ):
        self.title = title
        self.date_format = date_format
        self.figure_size = figure_size

    def write(self, result, output_file: str) -> bool:
        """Render `result` to `output_file`.

        Returns False when there is nothing to draw.

        Raises:
            ChartGenerationError: If drawing or saving the chart fails
        """
        data = forecast_to_dataframe(result)
        if data.dropna(how="all").empty:
            logger.warning("Cannot draw burnup chart with no data")
            return False

        try:
            fig, ax = plt.subplots(figsize=self.figure_size)
            try:
                self.plot(ax, data, result)
                self.save(fig, output_file)
            finally:
                plt.close(fig)
        except OSError as e:
            logger.error("Error saving chart file: %s", e)
            raise ChartGenerationError(f"Failed to save chart: {e}") from e
        except (ValueError, TypeError) as e:
            logger.error("Error generating chart: %s", e)
            raise ChartGenerationError(f"Chart generation failed: {e}") from e

        return True

    def plot(self, ax, data: pd.DataFrame, result):
        """Draw the four series, today's marker and the completion label."""
        for column, style in SERIES_STYLES.items():
            series = data[column].dropna()
            if series.empty:
                continue
            ax.plot(series.index, series.values, label=column, **style)

        if result.start_day <= result.today <= result.end_day:
            ax.axvline(
                pd.Timestamp(result.today),
                color="grey",
                linestyle=":",
                linewidth=1,
                label="Today",
            )

        completion = result.projected_completion.label(self.date_format)
        title = f"{self.title} - " if self.title else ""
        ax.set_title(f"{title}Projected completion: {completion}")

        ax.set_xlabel("Date")
        ax.set_ylabel("Days of work")
        ax.set_ylim(bottom=0)
        ax.legend(loc="upper left")
        ax.figure.autofmt_xdate()

        set_chart_style()

    def save(self, fig, output_file: str):
        output_dir = os.path.dirname(output_file)
        if output_dir:
            os.makedirs(output_dir, exist_ok=True)

        logger.info("Writing burnup chart to %s", output_file)
        fig.savefig(output_file, bbox_inches="tight", dpi=300)
