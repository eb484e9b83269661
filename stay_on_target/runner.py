"""Glue between the item source, the forecast engine and the writers."""

import logging

from .burnup_chart import BurnupChartWriter
from .burnup_data import write_data_files
from .forecast import forecast
from .normalizer import normalize

logger = logging.getLogger(__name__)


def fetch_work_items(query_manager, settings):
    """Run the configured query and normalize the issues it returns."""
    estimate_field_id = query_manager.field_name_to_id(settings["estimate_field"])
    raw_items = query_manager.find_raw_items(settings["query"], estimate_field_id)
    return normalize(raw_items, estimate_field_id, settings["estimate_to_days"])


def run_forecast(query_manager, settings, today):
    """Fetch work items and forecast them over the configured window."""
    items = fetch_work_items(query_manager, settings)
    return forecast(
        items,
        settings["start_date"],
        settings["end_date"],
        today,
        truncate_converged_tail=settings.get("truncate_converged_tail", True),
    )


def write_outputs(result, settings):
    """Write the data files and chart named in `settings`, if any."""
    data_files = settings.get("burnup_data") or []
    if data_files:
        write_data_files(result, data_files)
    else:
        logger.debug("No output file specified for burnup data")

    chart_file = settings.get("burnup_chart")
    if chart_file:
        writer = BurnupChartWriter(
            title=settings.get("burnup_chart_title") or settings.get("title"),
            date_format=settings.get("date_format", "%d/%m/%Y"),
        )
        writer.write(result, chart_file)
    else:
        logger.debug("No output file specified for burnup chart")
