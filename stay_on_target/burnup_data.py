"""Tabular form of a burnup forecast, and data file output."""

import logging

import pandas as pd

from .utils import get_extension

logger = logging.getLogger(__name__)

SCOPE_COLUMN = "Scope"
RESOLVED_COLUMN = "Resolved"
PROJECTED_SCOPE_COLUMN = "Projected scope"
PROJECTED_RESOLVED_COLUMN = "Projected resolved"

COLUMNS = [
    SCOPE_COLUMN,
    RESOLVED_COLUMN,
    PROJECTED_SCOPE_COLUMN,
    PROJECTED_RESOLVED_COLUMN,
]


def forecast_to_dataframe(result):
    """Build a DataFrame indexed by day with one column per series.

    Days without a value for a series hold NaN.
    """
    records = [
        {
            SCOPE_COLUMN: step.scope_days,
            RESOLVED_COLUMN: step.resolved_days,
            PROJECTED_SCOPE_COLUMN: step.projected_scope_days,
            PROJECTED_RESOLVED_COLUMN: step.projected_resolved_days,
        }
        for step in result.steps
    ]
    index = pd.DatetimeIndex(
        pd.to_datetime([step.day for step in result.steps]), name="Date"
    )
    return pd.DataFrame(records, index=index, columns=COLUMNS, dtype="float64")


def write_data_files(result, output_files):
    """Write the forecast timeline to each of `output_files`.

    The format follows the extension: `.json` writes a list of records with
    ISO dates, anything else is written as CSV.
    """
    data = forecast_to_dataframe(result)

    for output_file in output_files:
        output_extension = get_extension(output_file)

        logger.info("Writing burnup data to %s", output_file)
        if output_extension == ".json":
            data.reset_index().to_json(
                output_file, orient="records", date_format="iso"
            )
        else:
            data.reset_index().to_csv(output_file, header=True, index=False)
